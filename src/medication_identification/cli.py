# ============================================================================
# src/medication_identification/cli.py
# ============================================================================
"""
medscan command line.

Usage:
    medscan identify --image photo.jpg --region AZ
    medscan identify --text "ADVIL Ibuprofen 200mg" --barcode 12345678902
    medscan catalog paracetamol
    medscan check-model
    medscan serve --port 8000
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from .config import base_settings, logging_settings
from .constants.medication_catalog import get_catalog
from .core.recorder import SQLiteSessionRecorder
from .service import IdentificationService
from .utils.exceptions import ExtractionError, InsufficientInputError
from .utils.logging import setup_logging


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


async def _identify_image(args) -> int:
    from .capture.image_device import ImageFileDevice
    from .capture.orchestrator import CaptureOrchestrator, CaptureOutcome
    from .capture.pyzbar_decoder import PyzbarBarcodeDecoder
    from .capture.tesseract_ocr import TesseractOCREngine

    language = (args.language or "en").lower()
    languages = ["en"] if language == "en" else ["en", language]

    orchestrator = CaptureOrchestrator(
        ocr=TesseractOCREngine(languages=languages),
        decoder=PyzbarBarcodeDecoder(),
        recorder=SQLiteSessionRecorder(args.db) if args.user_id else None,
        device=ImageFileDevice(args.image),
    )
    try:
        result = await orchestrator.capture(
            user_id=args.user_id or "local", language=args.language, region=args.region
        )
    finally:
        await orchestrator.extractor.close()

    _print_json(result.to_dict())
    return 0 if result.outcome == CaptureOutcome.RESOLVED and not result.blocked else 1


async def _identify_text(args) -> int:
    service = IdentificationService(
        recorder=SQLiteSessionRecorder(args.db) if args.user_id else None,
    )
    try:
        result = await service.identify(
            args.text,
            barcode=args.barcode,
            language=args.language,
            region=args.region,
            user_id=args.user_id,
        )
    except InsufficientInputError as e:
        _print_json({"success": False, "error": str(e), "error_kind": "insufficient_input"})
        return 1
    except ExtractionError as e:
        _print_json({"success": False, "error": str(e), "error_kind": "extraction",
                     "retryable": e.retryable})
        return 2
    finally:
        await service.extractor.close()

    _print_json(result.to_response())
    return 0 if not result.assessment.blocks_presentation else 1


def cmd_identify(args) -> int:
    if not (args.image or args.text or args.barcode):
        print("ERROR: give --image, or --text and/or --barcode", file=sys.stderr)
        return 2
    if args.image:
        return asyncio.run(_identify_image(args))
    return asyncio.run(_identify_text(args))


def cmd_catalog(args) -> int:
    entries = get_catalog().search(args.query, region=args.region.upper() if args.region else None)
    if not entries:
        print(f"No catalog entries match '{args.query}'")
        return 1
    for entry in entries:
        barcode = entry.barcode or "-"
        print(f"{entry.product_name:<28} {entry.generic_name:<24} {entry.strength:<16} "
              f"{entry.country:<4} {barcode}")
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run(
        "medication_identification.api.app:app",
        host=args.host or base_settings.API_HOST,
        port=args.port or base_settings.API_PORT,
        log_level=logging_settings.LOG_LEVEL.lower(),
    )
    return 0


async def _check_model() -> int:
    from .llm.client import create_client

    client = create_client()
    try:
        status = await client.health_check()
    finally:
        await client.close()
    _print_json(status)
    return 0 if status.get("healthy") else 1


def cmd_check_model(args) -> int:
    return asyncio.run(_check_model())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="medscan", description="Identify medications from package labels")
    parser.add_argument("--log-level", type=str, help="Override LOG_LEVEL")
    parser.add_argument("--log-json", action="store_true", help="Structured JSON logs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    identify = subparsers.add_parser("identify", help="Identify one medication")
    identify.add_argument("--image", type=Path, help="Photo of the package")
    identify.add_argument("--text", type=str, help="Text read from the package")
    identify.add_argument("--barcode", type=str, help="Barcode on the package")
    identify.add_argument("--language", type=str, help="Answer language (default: en)")
    identify.add_argument("--region", type=str, help="Market region (default: US)")
    identify.add_argument("--user-id", type=str, help="Store the result for this user")
    identify.add_argument("--db", type=Path, default=None, help="Session database path")
    identify.set_defaults(func=cmd_identify)

    catalog = subparsers.add_parser("catalog", help="Search the known-medication catalog")
    catalog.add_argument("query", type=str)
    catalog.add_argument("--region", type=str, help="Only entries sold in this region")
    catalog.set_defaults(func=cmd_catalog)

    check = subparsers.add_parser("check-model", help="Check that the language model backend answers")
    check.set_defaults(func=cmd_check_model)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(
        level=args.log_level or logging_settings.LOG_LEVEL,
        log_file=logging_settings.LOG_FILE,
        format_json=args.log_json or logging_settings.LOG_FORMAT_JSON,
        stream=sys.stderr,
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
