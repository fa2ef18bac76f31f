"""CLI entry points: API server and one-off extraction."""

import argparse
import json
import logging
import mimetypes
import sys
import time

import uvicorn

from metadata_engine.config import get_settings
from metadata_engine.extractors import build_default_registry
from metadata_engine.orchestrator import MetadataOrchestrator
from metadata_engine.resources import Resource, ResourceKind
from metadata_engine.store import InMemoryMetadataStore


def run_server() -> None:
    """Run the Metadata Engine API server."""
    uvicorn.run(
        "metadata_engine.main:app",
        host="0.0.0.0",
        port=8001,
        reload=False,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Extract embedded metadata from a file")
    parser.add_argument("file", help="Path to file")
    parser.add_argument("--media-type", help="MIME type (default: guessed from the file name)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--json", action="store_true", help="Output as JSON (default: human-readable)")

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    media_type = args.media_type or mimetypes.guess_type(args.file)[0]
    if not media_type:
        print(f"Error: cannot guess media type of {args.file}, use --media-type", file=sys.stderr)
        return 1

    settings = get_settings()
    orchestrator = MetadataOrchestrator(
        build_default_registry(settings),
        InMemoryMetadataStore(),
        settings.media_types,
    )
    media = Resource(id=0, kind=ResourceKind.MEDIA, media_type=media_type)

    start_time = time.perf_counter()
    record = orchestrator.extract(args.file, media_type, media)
    elapsed = time.perf_counter() - start_time

    if record is None:
        print(f"No metadata extracted from {args.file} ({media_type})", file=sys.stderr)
        return 1

    if args.json:
        output = record.model_dump(mode="json")
        output["elapsed_seconds"] = round(elapsed, 2)
        print(json.dumps(output, indent=2))
    else:
        print(f"File: {args.file}")
        print(f"Media type: {media_type}")
        for metadata_type, tags in record.payload.items():
            print()
            print(f"[{metadata_type}] via {record.extractors.get(metadata_type, '?')}")
            if not isinstance(tags, dict):
                print(f"  {tags}")
                continue
            for tag, value in tags.items():
                print(f"  {tag}: {value}")
        print()
        print(f"Elapsed: {elapsed:.2f}s")

    return 0


if __name__ == "__main__":
    sys.exit(main())
