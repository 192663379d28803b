import argparse
import json
from collections.abc import Sequence


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Report where a stored document is referenced")
    parser.add_argument("--file", type=str, required=True, help="Document as folder/name, URL or bare filename")
    parser.add_argument("--detach-ledger", action="store_true", help="Remove the document from every product ledger")
    parser.add_argument("--delete-files", action="store_true", help="With --detach-ledger: also drop registry rows and files")
    args = parser.parse_args(argv)
    if args.delete_files and not args.detach_ledger:
        parser.error("--delete-files requires --detach-ledger")
    return args


def run(file: str, detach_ledger: bool = False, delete_files: bool = False) -> dict:
    from doclink.core.logging import configure_logging
    from doclink.db.session import session_scope
    from doclink.schemas.results import DetachRequest, DetachScope
    from doclink.services.bootstrap import build_orchestrator

    configure_logging()
    with session_scope() as session:
        orchestrator = build_orchestrator(session)
        if detach_ledger:
            scope = DetachScope.FILESYSTEM_AND_ALL if delete_files else DetachScope.BULK_LEDGER
            result = orchestrator.detach(DetachRequest(file=file, scope=scope))
        else:
            result = orchestrator.file_usage(file)
    return result.model_dump(mode="json")


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    outcome = run(args.file, detach_ledger=args.detach_ledger, delete_files=args.delete_files)
    print(json.dumps(outcome, ensure_ascii=False, indent=2))
    return 0 if outcome.get("success") else 1


if __name__ == "__main__":
    raise SystemExit(main())
