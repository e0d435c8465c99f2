# src/data_processing/pipeline.py

import logging
from dataclasses import dataclass
from typing import Union

from ..api.schemas import (
    AnalysisFailureResponse,
    AnalysisSuccessResponse,
    HealthAnalysisResult,
    TokenReward,
)
from ..errors import HealthAnalysisError, NotHealthDocument, classify_unexpected_error
from ..parser import AnalysisExtractor, DocumentClassifier
from ..prompts import not_health_document_details
from ..storage import AnalysisStore, RewardLedger, TokenRewardOutcome
from .validation import UploadedDocument

ResponseEnvelope = Union[AnalysisSuccessResponse, AnalysisFailureResponse]


@dataclass(frozen=True)
class PipelineOutcome:
    """The envelope to send back plus the HTTP status to send it with."""
    envelope: ResponseEnvelope
    status_code: int

    @property
    def succeeded(self) -> bool:
        return self.envelope.success


def failure_envelope(error: HealthAnalysisError) -> PipelineOutcome:
    return PipelineOutcome(
        envelope=AnalysisFailureResponse(kind=error.kind, error=error.label, details=error.details),
        status_code=error.status_code,
    )


def success_envelope(
    document: UploadedDocument,
    analysis: HealthAnalysisResult,
    reward: TokenRewardOutcome,
) -> PipelineOutcome:
    return PipelineOutcome(
        envelope=AnalysisSuccessResponse(
            analysis=analysis,
            file_name=document.file_name,
            file_size=document.size,
            file_type=document.content_type,
            token_reward=TokenReward(
                earned=reward.earned_tokens,
                total=reward.total_tokens,
                is_new_user=reward.is_new_user,
            ),
        ),
        status_code=200,
    )


class HealthAnalysisPipeline:
    """
    Classify -> extract -> persist -> reward, for one validated upload.

    Each stage runs only if the previous one succeeded. Known failures carry
    their own label and status; anything else is mapped by
    classify_unexpected_error. Nothing is retried.
    """

    def __init__(
        self,
        classifier: DocumentClassifier,
        extractor: AnalysisExtractor,
        store: AnalysisStore,
        ledger: RewardLedger,
    ):
        self.classifier = classifier
        self.extractor = extractor
        self.store = store
        self.ledger = ledger

    def run(self, document: UploadedDocument) -> PipelineOutcome:
        try:
            return self._run(document)
        except HealthAnalysisError as e:
            logging.warning(f"Analysis of {document.file_name} stopped: {e.kind} - {e}")
            return failure_envelope(e)
        except Exception as e:
            logging.error(f"Health analysis error: {e}", exc_info=True)
            return failure_envelope(classify_unexpected_error(e))

    def _run(self, document: UploadedDocument) -> PipelineOutcome:
        logging.info(f"--- Analysing: {document.file_name} ({document.content_type}, {document.size} bytes) ---")

        # STEP 1: is this a health document at all?
        verdict = self.classifier.classify(document)
        if not verdict.is_health_document:
            raise NotHealthDocument(
                not_health_document_details(verdict.document_type, verdict.confidence, verdict.reason)
            )

        # STEP 2: detailed structured analysis
        analysis = self.extractor.extract(document)

        # STEP 3: persist, then credit the wallet
        self.store.create(
            wallet_address=document.wallet_address,
            file_name=document.file_name,
            file_size=document.size,
            file_type=document.content_type,
            format="json",
            analysis_data=analysis.model_dump(mode="json", by_alias=True),
        )
        reward = self.ledger.reward_for_analysis(document.wallet_address)

        logging.info(f"✅ Analysis of {document.file_name} complete.")
        return success_envelope(document, analysis, reward)
