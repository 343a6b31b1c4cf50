"""
Command-line interface for the E-Invoice QC Service.
Provides validate, normalize, and codes commands.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .config import configure_logging, get_settings
from .models import (
    INVOICE_TYPE_CODES,
    PAYMENT_MEANS_CODES,
    InvoiceSubmission,
    ValidationReport,
)
from .validator import InvoiceValidator


def infer_format(path: Path, declared: Optional[str]) -> str:
    """Use the declared format, else guess from the file extension."""
    if declared:
        return declared
    return 'xml' if path.suffix.lower() == '.xml' else 'json'


def load_submissions(paths: List[str], declared_format: Optional[str]) -> List[InvoiceSubmission]:
    """
    Read invoice files into submissions.

    A JSON file holding an array contributes one submission per element.

    Raises:
        FileNotFoundError: if a path does not exist
        json.JSONDecodeError: if a JSON file cannot be parsed
    """
    submissions = []
    for raw_path in paths:
        path = Path(raw_path)
        fmt = infer_format(path, declared_format)

        if fmt == 'xml':
            submissions.append(InvoiceSubmission(payload=path.read_bytes(), format='xml', source=path.name))
            continue

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if isinstance(data, list):
            for index, item in enumerate(data):
                submissions.append(InvoiceSubmission(payload=item, format=fmt, source=f"{path.name}[{index}]"))
        else:
            submissions.append(InvoiceSubmission(payload=data, format=fmt, source=path.name))
    return submissions


def validate_command(args):
    """Validate invoice files and optionally write a JSON report."""
    print(f"🔍 Validating {len(args.paths)} file(s)")
    print("-" * 50)

    try:
        submissions = load_submissions(args.paths, args.format)
    except FileNotFoundError as e:
        print(f"\n❌ Error: Input file not found: {e.filename}")
        return 1
    except json.JSONDecodeError as e:
        print(f"\n❌ Error: Invalid JSON in input file: {e}")
        return 1

    if not submissions:
        print("\n⚠️  No invoices found in the given files.")
        return 1

    report = InvoiceValidator().validate_batch(submissions)
    print_validation_summary(report)

    if args.report:
        with open(args.report, 'w', encoding='utf-8') as f:
            json.dump(report.model_dump(by_alias=True), f, indent=2, ensure_ascii=False)
        print(f"\n💾 Full report saved to: {args.report}")

    return 1 if report.summary.invalid_invoices > 0 else 0


def normalize_command(args):
    """Convert one invoice to canonical JSON."""
    path = Path(args.path)
    fmt = infer_format(path, args.format)

    try:
        payload = path.read_bytes() if fmt == 'xml' else path.read_text(encoding='utf-8')
    except FileNotFoundError:
        print(f"❌ Error: Input file not found: {args.path}", file=sys.stderr)
        return 1

    result = InvoiceValidator().validate(payload, fmt)
    if result.normalized_invoice is None:
        print(f"❌ {result.errors[0]}", file=sys.stderr)
        return 1

    output = json.dumps(result.normalized_invoice, indent=2, ensure_ascii=False)
    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(output)
        print(f"💾 Canonical invoice saved to: {args.output}", file=sys.stderr)
    else:
        print(output)

    for warning in result.warnings:
        print(f"⚠️  {warning}", file=sys.stderr)
    for error in result.errors:
        print(f"❌ {error}", file=sys.stderr)
    return 0 if result.is_valid else 1


def codes_command(args):
    """Print the invoice type and payment means code tables."""
    print("Invoice type codes:")
    for code, label in INVOICE_TYPE_CODES.items():
        print(f"  {code}  {label}")
    print("\nPayment means codes:")
    for code, label in PAYMENT_MEANS_CODES.items():
        print(f"  {code:>3}  {label}")
    return 0


def print_validation_summary(report: ValidationReport):
    """Print a human-readable validation summary."""
    summary = report.summary

    print(f"\n{'=' * 50}")
    print("📊 VALIDATION SUMMARY")
    print("=" * 50)
    print(f"Total invoices:   {summary.total_invoices}")
    print(f"✅ Valid:         {summary.valid_invoices}")
    print(f"❌ Invalid:       {summary.invalid_invoices}")

    if summary.error_counts:
        print(f"\n📋 Error breakdown:")
        sorted_errors = sorted(
            summary.error_counts.items(),
            key=lambda x: x[1],
            reverse=True
        )
        for error_type, count in sorted_errors[:10]:  # Top 10 errors
            print(f"  • {error_type}: {count}")

    if summary.invalid_invoices > 0:
        print(f"\n⚠️  Invalid invoices:")
        for entry in report.results:
            if not entry.result.is_valid:
                print(f"\n  Invoice: {entry.invoice_id}")
                if entry.source:
                    print(f"  Source:  {entry.source}")
                print(f"  Errors:")
                for error in entry.result.errors:
                    print(f"    - {error}")


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="E-Invoice QC Service - Normalize and validate invoices for FIRS e-invoicing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Validate legacy JSON and UBL XML invoices
  einvoice-qc validate invoices.json invoice.xml --report report.json

  # Print the canonical form of an invoice
  einvoice-qc normalize invoice.xml --output canonical.json

  # List code tables
  einvoice-qc codes
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    validate_parser = subparsers.add_parser(
        'validate',
        help='Validate invoice files (JSON object, JSON array, or XML)'
    )
    validate_parser.add_argument('paths', nargs='+', help='Invoice files to validate')
    validate_parser.add_argument(
        '--format',
        choices=['json', 'xml'],
        help='Format of all files (default: inferred from extension)'
    )
    validate_parser.add_argument('--report', help='Output JSON file for validation report')

    normalize_parser = subparsers.add_parser(
        'normalize',
        help='Convert an invoice to canonical JSON'
    )
    normalize_parser.add_argument('path', help='Invoice file')
    normalize_parser.add_argument(
        '--format',
        choices=['json', 'xml'],
        help='Format of the file (default: inferred from extension)'
    )
    normalize_parser.add_argument('--output', help='Write canonical JSON here instead of stdout')

    subparsers.add_parser('codes', help='List invoice type and payment means codes')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    configure_logging(get_settings())

    # Route to appropriate command handler
    if args.command == 'validate':
        return validate_command(args)
    elif args.command == 'normalize':
        return normalize_command(args)
    elif args.command == 'codes':
        return codes_command(args)

    return 0


if __name__ == '__main__':
    sys.exit(main())
