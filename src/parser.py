import re
import json
import logging
from abc import ABC, abstractmethod

from pydantic import ValidationError

from .api.schemas import ClassificationVerdict, HealthAnalysisResult
from .data_processing.validation import UploadedDocument
from .errors import AnalysisParseError, AnalysisSchemaError
from .llm_client import ModelClient
from .prompts import HEALTH_DOCUMENT_CHECK_PROMPT, JSON_ANALYSIS_PROMPT

RAW_EXCERPT_LENGTH = 500


def strip_code_fences(text: str) -> str:
    """Removes markdown code fences Gemini sometimes wraps around its JSON."""
    cleaned = re.sub(r"```json\n?", "", text)
    cleaned = re.sub(r"```\n?", "", cleaned)
    return cleaned.strip()


def parse_model_json(text: str):
    return json.loads(strip_code_fences(text))


# Every parser sends one prompt plus the document itself and reads back JSON
class BaseParser(ABC):
    prompt: str

    def __init__(self, client: ModelClient):
        self.client = client

    def ask(self, document: UploadedDocument) -> str:
        logging.info(f"Sending {type(self).__name__} request to Gemini AI for {document.file_name}...")
        return self.client.generate([
            self.prompt,
            {"mime_type": document.content_type, "data": document.content},
        ])

    @abstractmethod
    def parse(self, document: UploadedDocument):
        pass


class DocumentClassifier(BaseParser):
    prompt = HEALTH_DOCUMENT_CHECK_PROMPT

    def parse(self, document: UploadedDocument) -> ClassificationVerdict:
        return self.classify(document)

    def classify(self, document: UploadedDocument) -> ClassificationVerdict:
        raw_text = self.ask(document)
        try:
            payload = parse_model_json(raw_text)
        except ValueError as e:
            # A garbled verdict must not reject a legitimate document
            logging.warning(f"Could not read classification reply, assuming health document: {e}")
            return ClassificationVerdict.unverified()
        if not isinstance(payload, dict) or not isinstance(payload.get("isHealthDocument"), bool):
            logging.warning(f"Classification reply has no isHealthDocument flag, assuming health document: {raw_text[:200]}")
            return ClassificationVerdict.unverified()

        verdict = ClassificationVerdict.model_validate(payload)
        logging.info(
            f"Classified {document.file_name}: health={verdict.is_health_document} "
            f"type='{verdict.document_type}' confidence={verdict.confidence:g}"
        )
        return verdict


class AnalysisExtractor(BaseParser):
    prompt = JSON_ANALYSIS_PROMPT

    def parse(self, document: UploadedDocument) -> HealthAnalysisResult:
        return self.extract(document)

    def extract(self, document: UploadedDocument) -> HealthAnalysisResult:
        raw_text = self.ask(document)
        try:
            payload = parse_model_json(raw_text)
        except ValueError as e:
            logging.error(f"Gemini returned non-JSON analysis for {document.file_name}: {e}")
            raise AnalysisParseError(
                "The AI returned an invalid response format. "
                f"Raw response: {raw_text[:RAW_EXCERPT_LENGTH]}..."
            ) from e

        if not isinstance(payload, dict):
            raise AnalysisSchemaError(f"Expected a JSON object, got {type(payload).__name__}.")
        try:
            result = HealthAnalysisResult.model_validate(payload)
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            logging.error(f"Gemini analysis for {document.file_name} failed schema validation: {fields}")
            raise AnalysisSchemaError(f"Invalid fields: {', '.join(fields)}") from e

        logging.info(
            f"Successfully parsed analysis '{result.title}' with {len(result.findings)} findings."
        )
        return result
