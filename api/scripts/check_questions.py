import argparse
import json
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from funnel.config import QUESTIONS_PATH
from funnel.services.survey_validation import validate_question_catalog


def main() -> None:
    parser = argparse.ArgumentParser(description="Validate a question catalog JSON file")
    parser.add_argument("path", nargs="?", default=str(QUESTIONS_PATH))
    args = parser.parse_args()

    with open(args.path, "r", encoding="utf-8") as f:
        definition = json.load(f)

    errors = validate_question_catalog(definition)
    if errors:
        print(json.dumps({"valid": False, "errors": errors}, indent=2))
        sys.exit(1)
    print(json.dumps({"valid": True, "questions": len(definition.get("questions") or [])}, indent=2))


if __name__ == "__main__":
    main()
