"""Semantic guideline matching with batched structured evaluation and a session cache."""

import threading
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Sequence

from langsmith.run_helpers import traceable

from ..core.config import CascadeConfig
from ..core.errors import MatchEvaluationError
from ..core.logging import get_logger
from ..core.parsing import message_text, parse_json
from ..core.schemas import BatchEvaluation, GuidelineEvaluation
from ..core.types import ChatMessage, Conversation, Guideline, GuidelineMatch, ToolResultRecord
from ..prompts import matcher as matcher_prompts
from .store import GuidelineStore

logger = get_logger(__name__)

EVALUATION_FAILED_REASON = "Evaluation failed - model unable to generate valid response"


def _clamp_unit(value: Any, default: float = 0.5) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return max(0.0, min(1.0, float(value)))


def summarize_history(messages: Sequence[ChatMessage], window: int) -> str:
    return "\n".join(f"{message.role}: {message.content}" for message in list(messages)[-window:])


def rank_matches(matches: Iterable[GuidelineMatch], threshold: float) -> List[GuidelineMatch]:
    """Drop matches below threshold, then order by priority desc and score desc."""
    kept = [match for match in matches if match.score >= threshold]
    return sorted(kept, key=lambda match: (-match.guideline.priority, -match.score))


class GuidelineMatcher:
    """Scores the enabled guidelines of a store against a conversation."""

    def __init__(self, config: CascadeConfig, store: Optional[GuidelineStore] = None):
        self.config = config
        self.store = store if store is not None else GuidelineStore()
        self._cache: Dict[str, List[GuidelineMatch]] = {}
        self._cache_version = self.store.version
        self._cache_lock = threading.Lock()
        self._model = None

    def add_guideline(self, guideline: Guideline) -> None:
        self.store.add(guideline)
        self.invalidate_cache()

    def load_guidelines(self, guidelines: Iterable[Guideline]) -> None:
        self.store.replace_all(guidelines)
        self.invalidate_cache()

    def invalidate_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()
            self._cache_version = self.store.version

    @traceable(name="matcher.match", run_type="chain")
    def match(
        self,
        conversation: Conversation,
        threshold: Optional[float] = None,
        batch_size: Optional[int] = None,
    ) -> List[GuidelineMatch]:
        threshold = self.config.match_threshold if threshold is None else threshold
        key = self._cache_key(conversation)
        scored = self._cache_get(key)
        if scored is None:
            version = self.store.version
            scored = self._score_guidelines(self.store.enabled(), conversation, batch_size)
            self._cache_put(key, scored, version)
        else:
            logger.info("matcher cache hit key=%s", key)
        ranked = rank_matches(scored, threshold)
        logger.info("matched %d/%d guidelines threshold=%.2f", len(ranked), len(scored), threshold)
        return ranked

    def quick_filter(self, conversation: Conversation) -> List[Guideline]:
        """Keyword pre-filter: keep guidelines whose condition shares a long word with the last message."""
        message = conversation.last_message.lower()
        candidates = []
        for guideline in self.store.enabled():
            keywords = [word for word in guideline.condition.lower().split(" ") if len(word) > 4]
            if any(keyword in message for keyword in keywords):
                candidates.append(guideline)
        return candidates

    @traceable(name="matcher.hybrid_match", run_type="chain")
    def hybrid_match(
        self,
        conversation: Conversation,
        threshold: Optional[float] = None,
        batch_size: Optional[int] = None,
    ) -> List[GuidelineMatch]:
        candidates = self.quick_filter(conversation)
        if not candidates:
            return []
        threshold = self.config.match_threshold if threshold is None else threshold
        return rank_matches(self._score_guidelines(candidates, conversation, batch_size), threshold)

    @traceable(name="matcher.reevaluate_after_tools", run_type="chain")
    def reevaluate_after_tools(
        self,
        conversation: Conversation,
        tool_results: Sequence[ToolResultRecord],
        threshold: Optional[float] = None,
    ) -> List[GuidelineMatch]:
        logger.info("re-evaluating guidelines after %d tool results", len(tool_results))
        enriched = replace(conversation, tool_results=list(tool_results))
        version = self.store.version
        scored = self._score_guidelines(self.store.enabled(), enriched, None)
        self._cache_put(self._cache_key(enriched), scored, version)
        threshold = self.config.match_threshold if threshold is None else threshold
        return rank_matches(scored, threshold)

    def _score_guidelines(
        self,
        guidelines: Sequence[Guideline],
        conversation: Conversation,
        batch_size: Optional[int],
    ) -> List[GuidelineMatch]:
        if not guidelines:
            return []
        size = batch_size or self.config.match_batch_size
        batches = [list(guidelines[start:start + size]) for start in range(0, len(guidelines), size)]
        summary = summarize_history(conversation.messages, self.config.match_history_window)
        prompts = [matcher_prompts.build_batch_prompt(batch, summary, conversation) for batch in batches]

        model = self._get_model()
        try:
            outputs = model.with_structured_output(BatchEvaluation).batch(
                prompts,
                config={"max_concurrency": self.config.match_max_concurrency},
                return_exceptions=True,
            )
        except Exception as exc:
            logger.warning("batch evaluation unavailable, falling back per guideline: %s", exc)
            outputs = [exc] * len(batches)

        scored: List[GuidelineMatch] = []
        for batch, output in zip(batches, outputs):
            try:
                scored.extend(self._matches_from_batch(batch, output))
            except MatchEvaluationError as exc:
                logger.warning("batch of %d guidelines failed (%s); evaluating individually", len(batch), exc)
                scored.extend(self._evaluate_single(guideline, summary, conversation) for guideline in batch)
        return scored

    def _matches_from_batch(self, batch: Sequence[Guideline], output: Any) -> List[GuidelineMatch]:
        if isinstance(output, Exception):
            raise MatchEvaluationError(str(output)) from output
        if output is None or not getattr(output, "evaluations", None):
            raise MatchEvaluationError("empty batch evaluation")
        matches = []
        for evaluation in output.evaluations:
            index = evaluation.guideline_index - 1
            if not 0 <= index < len(batch):
                continue
            score = _clamp_unit(evaluation.confidence) if evaluation.applies else 0.0
            matches.append(GuidelineMatch(guideline=batch[index], score=score, reason=evaluation.reasoning))
        if not matches:
            raise MatchEvaluationError("no valid guideline indices in batch evaluation")
        return matches

    def _evaluate_single(self, guideline: Guideline, summary: str, conversation: Conversation) -> GuidelineMatch:
        model = self._get_model()
        try:
            evaluation = model.with_structured_output(GuidelineEvaluation).invoke(
                matcher_prompts.build_single_prompt(guideline, summary, conversation)
            )
            if evaluation is None:
                raise MatchEvaluationError("empty evaluation")
            score = _clamp_unit(evaluation.confidence) if evaluation.applies else 0.0
            return GuidelineMatch(guideline=guideline, score=score, reason=evaluation.reasoning)
        except Exception as exc:
            logger.warning("structured evaluation failed for %s: %s", guideline.id, exc)

        try:
            response = model.invoke(matcher_prompts.build_single_prompt(guideline, summary, conversation, json_only=True))
            payload = parse_json(message_text(response))
            applies = bool(payload.get("applies"))
            confidence = _clamp_unit(payload.get("confidence"))
            reason = str(payload.get("reasoning") or "No reasoning provided")
            return GuidelineMatch(guideline=guideline, score=confidence if applies else 0.0, reason=reason)
        except Exception as exc:
            logger.warning("text fallback failed for %s: %s", guideline.id, exc)

        return GuidelineMatch(guideline=guideline, score=0.0, reason=EVALUATION_FAILED_REASON)

    def _cache_key(self, conversation: Conversation) -> str:
        return f"{conversation.session_id}-{conversation.last_message[:self.config.match_cache_key_chars]}"

    def _cache_get(self, key: str) -> Optional[List[GuidelineMatch]]:
        with self._cache_lock:
            if self._cache_version != self.store.version:
                self._cache.clear()
                self._cache_version = self.store.version
                return None
            cached = self._cache.get(key)
            return list(cached) if cached is not None else None

    def _cache_put(self, key: str, scored: List[GuidelineMatch], version: int) -> None:
        with self._cache_lock:
            if version != self.store.version:
                return
            if self._cache_version != version:
                self._cache.clear()
                self._cache_version = version
            self._cache[key] = list(scored)

    def _get_model(self):
        if self._model is not None:
            return self._model

        from langchain_openai import ChatOpenAI

        self._model = ChatOpenAI(
            model=self.config.matcher_model,
            temperature=0,
            timeout=self.config.request_timeout_seconds,
        )
        return self._model
