"""
Entry point for comparing two record files as a module.
"""

import argparse
import json

from marc_evaluator import FieldComparator, RecordParser, SelectorConfig
from pathlib        import Path

def main():

    parser = argparse.ArgumentParser(description = "Compare a generated MARC record against a reference record.")
    parser.add_argument("reference", type = Path, help = "Path to the reference record.")
    parser.add_argument("candidate", type = Path, help = "Path to the generated record.")
    parser.add_argument("--profile", default = None, help = "Selector profile from evaluator.yml.")
    args = parser.parse_args()

    record_parser = RecordParser()
    reference     = record_parser.parse(args.reference.read_bytes())
    candidate     = record_parser.parse(args.candidate.read_bytes())

    comparator = FieldComparator(SelectorConfig.from_profile(args.profile))
    result     = comparator.compare(reference, candidate)

    print(json.dumps(result.to_dict(), indent = 2, ensure_ascii = False))

if __name__ == "__main__":
    main()
