"""Classify a single audio file from the command line."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import mimetypes
import sys
from pathlib import Path

from classifier.base import UnavailableClassifier
from classifier.factory import build_classifier
from config.settings import get_settings
from wizard.errors import WizardError
from wizard.session import AudioClassifier, ClassifierSession

LOGGER = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Classify an urban sound clip with a hosted model")
    parser.add_argument("notebook", type=Path, help="Model notebook (.ipynb) used as prompt context")
    parser.add_argument("audio", type=Path, help="Audio clip to classify")
    parser.add_argument(
        "--mime-type",
        default=None,
        help="Audio MIME type; guessed from the file name when omitted",
    )
    return parser.parse_args(argv)


async def run_classification(
    notebook: Path,
    audio: Path,
    classifier: AudioClassifier,
    *,
    mime_type: str | None = None,
) -> dict:
    session = ClassifierSession()
    try:
        session.upload_model(notebook.name, notebook.read_bytes())
        content_type = mime_type or mimetypes.guess_type(audio.name)[0]
        await session.select_audio(audio.name, content_type, audio.read_bytes())
        result = await session.classify(classifier)
    finally:
        await session.close()
    return result.model_dump()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=get_settings().log_level)

    try:
        classifier: AudioClassifier = build_classifier()
    except ValueError as exc:
        # Missing credentials surface as an ordinary classification failure.
        LOGGER.error("Classifier unavailable: %s", exc)
        classifier = UnavailableClassifier(str(exc))

    try:
        result = asyncio.run(
            run_classification(args.notebook, args.audio, classifier, mime_type=args.mime_type)
        )
    except WizardError as exc:
        print(f"error: {exc.detail}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
