"""
LLM client for agent actions
Talks to an OpenAI compatible chat completions endpoint
"""
from typing import Any, Dict, Optional

import requests

from ..errors import AgentExecutionError
from ..monitoring import get_logger
from ..utils.blocking import run_blocking
from ..utils.retry import RetryOptions, retry

SYSTEM_MESSAGE = (
    "You are a legal document assistant working for a law firm. "
    "Answer precisely and only from the provided document."
)

ACTION_PROMPTS = {
    'analyze': "Analyze the following legal document. Identify parties, obligations, "
               "key dates and anything unusual.{focus}\n\nDocument:\n{content}",
    'summarize': "Summarize the following legal document in at most {max_words} words."
                 "\n\nDocument:\n{content}",
    'review': "Review the following legal document for risky clauses and missing "
              "protections.{checklist}\n\nDocument:\n{content}",
}

MAX_CONTENT_CHARS = 8000


class LLMClient:
    """Chat completion calls with retry on transient failures"""

    def __init__(self, url: str, model: str = 'local-model', timeout: int = 30,
                 retry_options: Optional[RetryOptions] = None):
        self.url = url
        self.model = model
        self.timeout = timeout
        self.retry_options = retry_options or RetryOptions()
        self.logger = get_logger('llm_client')

    def build_prompt(self, action: str, content: str, params: Dict[str, Any]) -> str:
        if params.get('prompt'):
            return f"{params['prompt']}\n\nDocument:\n{content[:MAX_CONTENT_CHARS]}"

        focus = f" Focus on: {params['focus']}." if params.get('focus') else ""
        checklist = ""
        if params.get('checklist'):
            checklist = " Check in particular: " + ", ".join(map(str, params['checklist'])) + "."

        return ACTION_PROMPTS[action].format(
            content=content[:MAX_CONTENT_CHARS],
            focus=focus,
            checklist=checklist,
            max_words=params.get('maxWords', 150)
        )

    async def complete(self, prompt: str) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_MESSAGE},
                {"role": "user", "content": prompt}
            ],
            "temperature": 0.1
        }
        return await retry(lambda: run_blocking(self._post, payload), self.retry_options)

    def _post(self, payload: Dict[str, Any]) -> str:
        response = requests.post(self.url, json=payload, timeout=self.timeout)

        if response.status_code != 200:
            self.logger.warning("LLM endpoint error", status_code=response.status_code)
            raise AgentExecutionError(f"LLM endpoint returned {response.status_code}",
                                      status_code=response.status_code)

        try:
            return response.json()['choices'][0]['message']['content'].strip()
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AgentExecutionError(f"Malformed LLM response: {e}") from e
