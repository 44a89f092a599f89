"""
Entry point for running the record parser as a module.
"""

import argparse

from marc_evaluator import RecordParser
from pathlib        import Path

def main():

    parser = argparse.ArgumentParser(description = "Parse a MARC record and print its canonical fields.")
    parser.add_argument("record_file", type = Path, help = "Path to a mnemonic, MARCXML or ISO 2709 record.")
    parser.add_argument("--format", choices = RecordParser.FORMATS, default = None, help = "Declared record format.")
    args = parser.parse_args()

    record = RecordParser().parse(args.record_file.read_bytes(), declared_format = args.format)

    print(f"Format    : {record.source_format}")
    print(f"Withdrawn : {record.is_withdrawn}")
    print(record.to_mnemonic())

if __name__ == "__main__":
    main()
