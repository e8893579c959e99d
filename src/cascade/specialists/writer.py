"""Writer specialist composing the outbound reply from worker results."""

import time

from ..core.parsing import message_text
from ..core.types import WriterInput, WriterOutput
from ..prompts import writer as writer_prompts


def compose_reply(*, model, payload: WriterInput) -> WriterOutput:
    started = time.perf_counter()
    response = model.invoke(writer_prompts.build_writer_messages(payload))
    text = message_text(response)
    if not text:
        raise RuntimeError("Writer returned empty response.")
    return WriterOutput(
        response=text,
        used_worker_results=[result.worker_id for result in payload.worker_results if result.status == "success"],
        execution_time_ms=int((time.perf_counter() - started) * 1000),
    )
