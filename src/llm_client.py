# src/llm_client.py

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Union

import google.generativeai as genai

# A prompt part is either instruction text or an inline blob
# of the form {"mime_type": ..., "data": <bytes>}.
Part = Union[str, Dict[str, Any]]


class ModelClient(ABC):
    """The one thing the parsers need from a generative model: parts in, text out."""

    @abstractmethod
    def generate(self, parts: List[Part]) -> str:
        pass


class GeminiModelClient(ModelClient):
    def __init__(self, api_key: str, config: dict):
        self.model_name = config.get('model_name', 'gemini-2.5-flash')
        # genai.configure is process-wide in the SDK
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(
            self.model_name,
            generation_config=genai.GenerationConfig(
                temperature=config.get('temperature', 0.4),
                top_p=config.get('top_p', 0.95),
                top_k=config.get('top_k', 40),
                max_output_tokens=config.get('max_output_tokens', 8192),
            )
        )
        logging.info(f"GeminiModelClient initialized with model: {self.model_name}")

    def generate(self, parts: List[Part]) -> str:
        response = self.model.generate_content(parts)
        return response.text
