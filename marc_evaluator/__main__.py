import argparse
import json

from datetime                              import date
from marc_evaluator                        import *
from marc_evaluator.core.dataset_loader    import load_dataset
from marc_evaluator.core.evaluation_runner import (
    METADATA_FORMAT, build_reference_dataset, load_results, load_settings, parse_candidate, save_eval_yaml, save_results
)
from pathlib                               import Path

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description = "Evaluate generated MARC records against reference records."
    )
    parser.add_argument(
        "--config",
        type    = Path,
        default = None,
        help    = "Path to a custom evaluator.yml."
    )
    commands = parser.add_subparsers(dest = "command", required = True)

    run = commands.add_parser("run", help = "Evaluate every item of a dataset.")
    run.add_argument("--dataset",  type = Path, required = True, help = "Directory holding dataset.json.")
    run.add_argument("--output",   type = Path, default = None,  help = "Directory for results.json.")
    run.add_argument("--profile",  default = None,               help = "Selector profile from evaluator.yml.")
    run.add_argument("--provider", default = "",                 help = "Provider that generated the records.")
    run.add_argument("--model",    default = "",                 help = "Model that generated the records.")
    run.add_argument("--workers",  type = int, default = None,   help = "Number of records evaluated concurrently.")
    run.add_argument("--yaml",     action = "store_true",        help = "Also write an eval YAML document.")

    report = commands.add_parser("report", help = "Render a report from saved results.")
    report.add_argument("--results", type = Path, required = True, help = "Directory holding results.json.")
    report.add_argument("--format",  choices = ReportRenderer.FORMATS, default = "text", help = "Report format.")

    compare = commands.add_parser("compare", help = "Compare one generated record with one reference record.")
    compare.add_argument("reference",          type = Path, help = "Path to the reference record.")
    compare.add_argument("candidate",          type = Path, help = "Path to the generated record.")
    compare.add_argument("--profile",          default = None, help = "Selector profile from evaluator.yml.")
    compare.add_argument("--reference-format", choices = RecordParser.FORMATS, default = None)
    compare.add_argument("--candidate-format", choices = RecordParser.FORMATS + (METADATA_FORMAT,), default = None)

    build = commands.add_parser("build-reference", help = "Build a reference dataset from Institutional Books metadata.")
    build.add_argument("--source",     type = Path, required = True, help = "JSONL or Parquet metadata file.")
    build.add_argument("--output",     type = Path, required = True, help = "Directory for dataset.json.")
    build.add_argument("--limit",      type = int,  default = None,  help = "Maximum number of records to read.")
    build.add_argument("--entered-on", type = date.fromisoformat, default = None, help = "008 date entered (YYYY-MM-DD).")

    return parser

def run_command(args: argparse.Namespace) -> None:
    overrides = {'evaluation': {'max_workers': args.workers}} if args.workers else None
    settings  = load_settings(args.config, overrides)
    runner    = EvaluationRunner.from_settings(settings, profile = args.profile, config_file = args.config)
    dataset   = load_dataset(args.dataset)

    aggregate = runner.run(
        dataset.items,
        metadata = {'provider': args.provider, 'model': args.model, 'dataset': str(args.dataset)}
    )

    output_dir = args.output or Path(settings.output.results_dir)
    print(ReportRenderer(aggregate).render_text())
    print(f"Results saved to: {save_results(aggregate, output_dir)}")

    if args.yaml:
        print(f"Eval YAML saved to: {save_eval_yaml(aggregate, settings.output.evals_dir)}")

def compare_command(args: argparse.Namespace) -> None:
    parser    = RecordParser()
    reference = parser.parse(args.reference.read_bytes(), declared_format = args.reference_format)
    candidate = (
        parse_candidate(parser, args.candidate.read_text(encoding = "utf-8"), METADATA_FORMAT)
        if args.candidate_format == METADATA_FORMAT
        else parser.parse(args.candidate.read_bytes(), declared_format = args.candidate_format)
    )
    result    = FieldComparator(SelectorConfig.from_profile(args.profile, config_file = args.config)).compare(reference, candidate)

    print(json.dumps(result.to_dict(), indent = 2, ensure_ascii = False))

def build_reference_command(args: argparse.Namespace) -> None:
    records = InstitutionalBooksLoader(args.source).load(limit = args.limit)
    dataset = build_reference_dataset(records, args.output, entered_on = args.entered_on)

    print(f"Wrote {len(dataset)} reference items to {args.output / 'dataset.json'}")

def main() -> int:

    args = build_parser().parse_args()

    try:
        if args.command == "run":
            run_command(args)
        elif args.command == "report":
            print(ReportRenderer(load_results(args.results)).render(args.format))
        elif args.command == "compare":
            compare_command(args)
        elif args.command == "build-reference":
            build_reference_command(args)
    except (ConfigurationError, DatasetError, ParseError, OSError) as e:
        print(f"Error: {e}")
        return 1

    return 0

if __name__ == "__main__":
    raise SystemExit(main())
