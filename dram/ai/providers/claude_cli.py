"""
Claude CLI Provider
===================

Classification through the local ``claude`` command-line client. The user
message is piped on stdin; the system prompt and model are passed as flags.
"""

import asyncio
from typing import Any, Dict, List, Optional

from ...config.settings import ClassificationSettings
from ...models import RawItem, ScoredItem
from ...utils.exceptions import ClassificationError, ErrorCode
from ...utils.logging import get_logger_for_component
from ..prompts import (
    build_analysis_message,
    build_analysis_system_prompt,
    build_scoring_message,
    build_scoring_system_prompt,
)
from .base import ClassificationProvider, parse_json_response


class ClaudeCliProvider(ClassificationProvider):
    """Runs triage on the cheap model and analysis on the deep model."""

    name = "claude_cli"

    def __init__(self, settings: Optional[ClassificationSettings] = None):
        self.settings = settings or ClassificationSettings()
        self.logger = get_logger_for_component("claude_cli")

    def build_command(self, model: str, system_prompt: str) -> List[str]:
        return [
            self.settings.cli_command,
            "-p",
            "--model", model,
            "--output-format", "text",
            "--system-prompt", system_prompt,
        ]

    async def _call(self, model: str, system_prompt: str, user_message: str) -> str:
        """Run the CLI once and return its stdout.

        Raises:
            ClassificationError: If the CLI is missing, times out or exits non-zero
        """
        command = self.build_command(model, system_prompt)

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ClassificationError(
                f"Cannot start {self.settings.cli_command}: {e}",
                provider=self.name,
                error_code=ErrorCode.AI_PROVIDER_UNAVAILABLE,
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(user_message.encode("utf-8")),
                timeout=self.settings.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise ClassificationError(
                f"{self.settings.cli_command} timed out after {self.settings.timeout_seconds}s",
                provider=self.name,
                error_code=ErrorCode.AI_TIMEOUT,
            ) from e

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise ClassificationError(
                f"{self.settings.cli_command} exited with {process.returncode}: {detail}",
                provider=self.name,
            )

        return stdout.decode("utf-8", errors="replace")

    async def score_batch(self, items: List[RawItem]) -> List[Dict[str, Any]]:
        if not items:
            return []

        raw = await self._call(
            self.settings.triage_model,
            build_scoring_system_prompt(),
            build_scoring_message(items, self.settings.summary_preview_chars),
        )
        scores = parse_json_response(raw)

        if not isinstance(scores, list):
            raise ClassificationError(
                f"Expected a JSON array of scores, got {type(scores).__name__}",
                provider=self.name,
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            )

        self.logger.debug(f"Scored batch of {len(items)} items ({len(scores)} results)")
        return scores

    async def analyze(self, item: ScoredItem) -> Dict[str, Any]:
        raw = await self._call(
            self.settings.analysis_model,
            build_analysis_system_prompt(),
            build_analysis_message(item),
        )
        analysis = parse_json_response(raw)

        if not isinstance(analysis, dict):
            raise ClassificationError(
                "Expected a JSON object for analysis",
                provider=self.name,
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            )

        return analysis
