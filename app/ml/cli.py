import argparse
import json
import sys
from datetime import date

from app.core.logging import setup_logging
from app.database import create_tables, session_scope
from app.ml.model_io import ModelArtifactError, load_model, model_available
from app.ml.model_state import ModelState
from app.services.analysis_service import portfolio_summary, summary_to_dict
from app.services.prediction_service import TIER_SOURCES, generate_predictions, reload_model


def _parse_date(value):
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("expected YYYY-MM-DD, got {!r}".format(value)) from exc


def build_parser():
    parser = argparse.ArgumentParser(description="Inventory demand intelligence tools.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Print the ABC portfolio summary.")
    analyze.add_argument("--as-of", dest="as_of", type=_parse_date, default=None)
    analyze.add_argument("--window-days", dest="window_days", type=int, default=None)

    forecast = subparsers.add_parser("forecast", help="Regenerate stored demand forecasts.")
    forecast.add_argument("--days", type=int, default=None)
    forecast.add_argument("--seed", type=int, default=None)
    forecast.add_argument("--tiers", choices=TIER_SOURCES, default=None)
    forecast.add_argument("--today", type=_parse_date, default=None)

    model_info = subparsers.add_parser("model-info", help="Inspect the demand model artifact.")
    model_info.add_argument("--model-path", dest="model_path", default=None)
    model_info.add_argument("--metadata-path", dest="metadata_path", default=None)
    return parser


def _model_info(args):
    if not model_available(args.model_path):
        print("No demand model artifact found; projections use the heuristic.")
        return 1
    try:
        model, metadata = load_model(args.model_path, args.metadata_path)
    except ModelArtifactError as exc:
        print("Demand model artifact is unusable: {}".format(exc))
        return 2
    if not metadata:
        print("Model loaded, but no metadata file found.")
        return 0
    print(json.dumps(metadata, indent=2, default=str))
    return 0


def _analyze(db, args):
    summary = portfolio_summary(db, as_of=args.as_of, window_days=args.window_days)
    print(json.dumps(summary_to_dict(summary), indent=2, default=str))
    return 0


def _forecast(db, args):
    model_state = ModelState()
    reload_model(model_state)
    rows = generate_predictions(
        db,
        model_state,
        today=args.today,
        days=args.days,
        seed=args.seed,
        tier_source=args.tiers,
    )
    print("Generated {} forecast(s).".format(len(rows)))
    return 0


def main(argv=None, session_factory=None):
    args = build_parser().parse_args(argv)
    setup_logging()

    if args.command == "model-info":
        return _model_info(args)

    if session_factory is None:
        create_tables()
    with session_scope(session_factory) as db:
        if args.command == "analyze":
            return _analyze(db, args)
        return _forecast(db, args)


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
