"""
Coach services: prompt assembly and light post-processing around the
chat-completion client. Nothing here touches the journal state.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from journal.ai.advisory import extract_confidence, parse_advisory_text
from journal.ai.client import ChatCompletionClient
from journal.core.analytics import history_metrics, trade_summary
from journal.core.ledger import Position, unrealized_multiple
from journal.utils.constants import (
    COACHING_CONFIDENCE, EXIT_CONFIDENCE, PATTERN_CONFIDENCE,
)
from journal.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class AIResponse:
    content: str
    confidence: int
    recommendations: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)


def _money(value) -> str:
    return f"{float(value or 0):,.0f}"


class CoachService:
    """Builds coach prompts from journal data and parses the replies."""

    def __init__(self, client: ChatCompletionClient, prompts: Mapping[str, str]):
        self.client = client
        self.prompts = prompts

    def _ask(self, system_key: str, prompt: str, model: Optional[str] = None,
             max_tokens: Optional[int] = None) -> str:
        return self.client.complete(
            [
                {'role': 'system', 'content': self.prompts[system_key]},
                {'role': 'user', 'content': prompt},
            ],
            model=model,
            max_tokens=max_tokens,
        )

    def analyze_trade_setup(self, trade: Mapping[str, Any],
                            psychology: Mapping[str, Any]) -> AIResponse:
        """Risk assessment of a planned entry given the trader's state."""
        prompt = (
            "Analyze this memecoin trade setup:\n\n"
            f"Token: {trade.get('token_name', '')} ({trade.get('ticker', '')})\n"
            f"Entry Market Cap: ${_money(trade.get('entry_market_cap'))}\n"
            f"Investment: {trade.get('sol_investment', 0)} SOL\n\n"
            "Psychology Assessment:\n"
            f"- Fear: {psychology.get('fear_level')}/10\n"
            f"- Confidence: {psychology.get('confidence_level')}/10\n"
            f"- Sentiment (entry): {psychology.get('entry_sentiment')}/10\n"
            f"- Patience: {psychology.get('patience_level')}/10\n"
            f"- State of Mind: {psychology.get('state_of_mind')}\n"
            f"- Research Time (hrs): {psychology.get('research_time')}\n\n"
            "Provide:\n"
            "1. Risk assessment (low/medium/high)\n"
            "2. Recommended position size adjustment\n"
            "3. Entry quality score (0-100)\n"
            "4. Key warnings or concerns\n"
            "5. Suggested exit strategy\n"
        )
        content = self._ask('trade_analysis', prompt, max_tokens=1000)
        advisory = parse_advisory_text(content)
        return AIResponse(
            content=content,
            confidence=extract_confidence(content),
            recommendations=advisory.recommendations,
            warnings=advisory.warnings,
        )

    def generate_exit_recommendation(self, position: Position,
                                     current_market_cap: float) -> AIResponse:
        """Exit plan for an open position at the current market cap."""
        multiple = unrealized_multiple(position, current_market_cap)
        roi = (multiple - 1) * 100 if multiple > 0 else 0.0
        prompt = (
            "Analyze this active position and recommend exit strategy:\n\n"
            f"Token: {position.token_name}\n"
            f"Entry Market Cap: ${_money(position.entry_market_cap)}\n"
            f"Current Market Cap: ${_money(current_market_cap)} ({multiple:.2f}x)\n"
            f"ROI (MC-based): {roi:.2f}%\n"
            f"Remaining: {position.remaining_percentage:.1f}% of the original bag\n"
            f"Thesis: {position.behavioral.investment_thesis or 'N/A'}\n\n"
            "Provide specific exit recommendations.\n"
        )
        content = self._ask('exit_strategy', prompt, max_tokens=500)
        return AIResponse(
            content=content,
            confidence=EXIT_CONFIDENCE,
            recommendations=parse_advisory_text(content).recommendations,
        )

    def analyze_trade_history(self, trades: Sequence[Position]) -> AIResponse:
        """Pattern analysis across the trader's journal."""
        prompt = (
            "Analyze this trading history and identify patterns:\n\n"
            f"{trade_summary(trades)}\n\n"
            "Provide:\n"
            "1. Key winning patterns\n"
            "2. Common mistakes\n"
            "3. Optimal market cap entry range\n"
            "4. Psychology patterns (fear, FOMO, etc.)\n"
            "5. Specific recommendations for improvement\n"
        )
        content = self._ask('pattern_recognition', prompt, model='gpt-4o', max_tokens=1500)
        return AIResponse(
            content=content,
            confidence=PATTERN_CONFIDENCE,
            recommendations=parse_advisory_text(content).recommendations,
            metrics=history_metrics(trades),
        )

    def provide_psychology_coaching(
        self,
        question: str,
        recent_trades: Optional[Sequence[Position]] = None,
        current_psychology: Optional[Mapping[str, Any]] = None,
    ) -> AIResponse:
        """Answer a trader's question with their recent results as context."""
        context = ""
        if recent_trades:
            context += f"\nRecent trading performance: {trade_summary(recent_trades)}"
        if current_psychology:
            context += (
                f"\nCurrent state: Fear {current_psychology.get('fear_level')}/10, "
                f"Confidence {current_psychology.get('confidence_level')}/10"
            )
        prompt = f"User question: {question}\n{context}\n\nProvide personalized coaching advice.\n"
        content = self._ask('coaching', prompt, max_tokens=800)
        return AIResponse(content=content, confidence=COACHING_CONFIDENCE)

    def fiona_reply(
        self,
        messages: Optional[Sequence[Mapping[str, str]]] = None,
        prompt: Optional[str] = None,
        context: Optional[str] = None,
    ) -> str:
        """
        One chat turn with the Fiona persona.

        Only the explicit prompt, or else the latest user message, is sent;
        a greeting is requested when there is neither.
        """
        last_user = prompt or ""
        if not last_user:
            for message in reversed(list(messages or [])):
                if message.get('role') == 'user' and message.get('content'):
                    last_user = message['content']
                    break

        chat = [{'role': 'system', 'content': self.prompts['fiona_coach']}]
        if context:
            chat.append({'role': 'system', 'content': f"Context:\n{context}"})
        chat.append({'role': 'user', 'content': last_user or self.prompts['fiona_greeting']})
        return self.client.complete(chat)
