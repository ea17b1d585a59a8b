from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from resume_ats.core.errors import AtsError
from resume_ats.core.logging import configure_logging
from resume_ats.schemas.ats import TransformOptions
from resume_ats.services import AtsPipeline

logger = logging.getLogger(__name__)


def _read_job_text(args: argparse.Namespace) -> str:
    if args.job_text is not None:
        return args.job_text
    if args.job is not None:
        return Path(args.job).read_text(encoding="utf-8", errors="replace")
    return ""


def default_output_path(document: Path) -> Path:
    return document.with_name(f"{document.stem}.ats-fixed{document.suffix}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="resume-ats", description="Screen and repair resumes for ATS parsers.")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL for this run.")
    commands = parser.add_subparsers(dest="command", required=True)

    def add_common(command: argparse.ArgumentParser) -> None:
        command.add_argument("document", help="Path to a .docx, .odt or .pdf resume")
        job = command.add_mutually_exclusive_group()
        job.add_argument("--job", help="Path to a text file with the job description")
        job.add_argument("--job-text", help="Job description passed inline")

    validate = commands.add_parser("validate", help="Score a resume and print the JSON report.")
    add_common(validate)

    optimize = commands.add_parser("optimize", help="Fix ATS issues and write the repaired document.")
    add_common(optimize)
    optimize.add_argument("--out", help="Where to write the repaired document (default: <name>.ats-fixed.<ext>)")
    optimize.add_argument("--keep-fonts", action="store_true", help="Do not replace non-safe fonts.")
    optimize.add_argument("--keep-text-boxes", action="store_true", help="Do not remove text boxes.")
    optimize.add_argument("--keep-columns", action="store_true", help="Do not remove multi-column layout.")
    optimize.add_argument("--keep-tables", action="store_true", help="Do not flatten nested tables.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    document = Path(args.document)
    try:
        data = document.read_bytes()
        job_text = _read_job_text(args)
    except OSError as exc:
        print(json.dumps({"code": "io_error", "message": str(exc)}), file=sys.stderr)
        return 1

    pipeline = AtsPipeline()
    try:
        if args.command == "validate":
            report = pipeline.validate(data, job_text)
            print(report.model_dump_json(indent=2))
            return 0

        options = TransformOptions(
            fix_fonts=not args.keep_fonts,
            remove_text_boxes=not args.keep_text_boxes,
            convert_columns=not args.keep_columns,
            simplify_tables=not args.keep_tables,
        )
        result = pipeline.optimize(data, job_text, options)
    except AtsError as exc:
        logger.warning("ats_cli_failed command=%s code=%s error=%s", args.command, exc.code, exc)
        print(json.dumps(exc.to_dict()), file=sys.stderr)
        return 2

    out_path = Path(args.out) if args.out else default_output_path(document)
    out_path.write_bytes(result.document_bytes)
    payload = result.model_dump(mode="json")
    payload["output_path"] = str(out_path)
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
