"""
Statement Import CLI

Previews the import of a statement file: parsed movements, duplicate
flags, categories, errors and warnings.
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import RULES_FILE, load_import_config, resolve_config_dir
from .exceptions import StatementImportError
from .pdf_text import extract_pdf_file
from .pipeline import ImportPreview, StatementImporter
from .store import InMemoryMovementStore, InMemoryRuleStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statement-import",
        description="Preview the import of an ING statement (.txt or .pdf)",
    )
    parser.add_argument("file", help="Statement file (.txt or .pdf)")
    parser.add_argument("--account", required=True, help="Target account id")
    parser.add_argument("--rules", help="Categorization rules YAML")
    parser.add_argument("--config-dir", help="Configuration directory")
    parser.add_argument("--strict", action="store_true", help="Reject non-canonical formats")
    parser.add_argument("--ignore-duplicates", action="store_true",
                        help="Collapse repeated movements within the statement")
    parser.add_argument("--no-balance-check", action="store_true",
                        help="Skip running-balance continuity warnings")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def print_preview(preview: ImportPreview) -> None:
    print(f"Account: {preview.account_id}")
    if preview.metadata.get("period_start"):
        print(f"Period: {preview.metadata['period_start']} - {preview.metadata.get('period_end')}")
    print()

    for item in preview.items:
        movement = item.movement
        line = f"{movement.date.isoformat()}  {movement.amount:>12,.2f}  {movement.description}"
        if item.is_duplicate:
            line += f"  [DUPLICATE {item.verdict.confidence}%: {item.verdict.reason}]"
        elif item.categorization:
            category = item.categorization.category
            if item.categorization.subcategory:
                category += f" / {item.categorization.subcategory}"
            line += f"  -> {category}"
        print(line)

    print(f"\nTo import: {len(preview.to_import)}  Duplicates: {len(preview.duplicates)}")

    if preview.errors:
        print(f"\nErrors ({len(preview.errors)}):")
        for error in preview.errors:
            print(f"  - {error}")

    if preview.warnings:
        print(f"\nWarnings ({len(preview.warnings)}):")
        for warning in preview.warnings:
            print(f"  - {warning}")


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    file_path = Path(args.file)
    try:
        config = load_import_config(args.config_dir)
        config = config.replace(
            tolerate_format_errors=config.tolerate_format_errors and not args.strict,
            ignore_duplicates=config.ignore_duplicates or args.ignore_duplicates,
            validate_balances=config.validate_balances and not args.no_balance_check,
        )

        rules_path = args.rules or resolve_config_dir(args.config_dir) / RULES_FILE
        rules = InMemoryRuleStore.from_yaml(rules_path)

        if file_path.suffix.lower() == ".pdf":
            text = extract_pdf_file(file_path)
        else:
            text = file_path.read_text(encoding="utf-8")

        importer = StatementImporter(
            history=InMemoryMovementStore(),
            rules=rules,
            config=config,
            source_category_map=rules.source_category_map,
        )
        preview = importer.preview(text, args.account)
    except (StatementImportError, OSError, UnicodeDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print_preview(preview)
    return 0


if __name__ == "__main__":
    sys.exit(main())
