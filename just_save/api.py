"""Public orchestration for the ``just_save`` package.

:class:`StatementPipeline` wires the stages together for one request at a
time:

- ``extract_transactions``: statement text -> validated transactions.
- ``analyze``: transactions -> :class:`~just_save.models.Analysis`.
- ``explain``: analysis -> short advisory narrative.
- ``run``: extract then analyze under a single stage tracker.

Each reasoning call runs under the configured deadline and honors an optional
``cancel`` event. Nothing is retried here; errors carry ``retryable`` so the
caller can offer "try again".
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from os import PathLike
from pathlib import Path
from typing import Any, TypeVar

from . import aggregation, prompting
from .assembly import assemble_analysis, parse_analysis_response
from .config import Settings
from .errors import (
    AnalysisCancelled,
    EmptyInput,
    NoJsonFound,
    ReasoningTimeout,
    UnsupportedFileType,
    extraction_format_error,
)
from .gateway import ReasoningGateway
from .logging_setup import clip_raw, get_logger
from .models import Analysis, SourceKind, Transaction
from .normalize import detect_source_kind, ensure_within_limit, normalize_input
from .pdf_text import extract_pdf_text
from .sanitize import decode_json, strip_fences
from .stages import PipelineRun, Stage, StageCallback
from .validation import validate_transactions

_logger = get_logger("just_save.api")

T = TypeVar("T")

_RECORD_KEYS = frozenset({"date", "description", "amount", "type"})


def _source_kind(value: SourceKind | str) -> SourceKind:
    try:
        return SourceKind(str(value).lower())
    except ValueError as e:
        raise UnsupportedFileType(f"unsupported source kind {value!r}") from e


def _decode_transactions_payload(raw: str) -> Any:
    """Decode an extraction reply: an array, a ``transactions`` wrapper or one record.

    A reply whose first bracket opens an array must decode as that array.
    Truncated or malformed arrays raise ``NoJsonFound`` instead of yielding
    whichever record object happens to parse on its own.
    """

    body = strip_fences(raw or "")
    array_at, object_at = body.find("["), body.find("{")
    if array_at != -1 and (object_at == -1 or array_at < object_at):
        return decode_json(raw, "array")
    value = decode_json(raw, "object")
    if isinstance(value.get("transactions"), list) or _RECORD_KEYS <= value.keys():
        return value
    raise NoJsonFound("Expected a JSON array of transactions", raw_response=raw)


class StatementPipeline:
    """Statement-to-analysis pipeline bound to one reasoning gateway."""

    def __init__(self, gateway: ReasoningGateway, settings: Settings | None = None) -> None:
        self.gateway = gateway
        self.settings = settings or Settings()

    # ---- Reasoning call under deadline / cancellation -----------------------

    async def _complete(
        self, prompt: str, *, max_tokens: int, cancel: asyncio.Event | None
    ) -> str:
        if cancel is not None and cancel.is_set():
            raise AnalysisCancelled("cancelled before the reasoning call started")

        call = asyncio.ensure_future(self.gateway.complete(prompt, max_tokens=max_tokens))
        waiters: set[asyncio.Future[Any]] = {call}
        cancel_wait: asyncio.Future[Any] | None = None
        if cancel is not None:
            cancel_wait = asyncio.ensure_future(cancel.wait())
            waiters.add(cancel_wait)

        timeout = self.settings.request_timeout_s
        try:
            done, _pending = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for fut in waiters:
                if not fut.done():
                    fut.cancel()

        if call in done:
            return call.result()
        if cancel_wait is not None and cancel_wait in done:
            _logger.info("reasoning:cancelled")
            raise AnalysisCancelled("cancelled while waiting for the reasoning engine")
        _logger.warning("reasoning:deadline_exceeded timeout_s=%.1f", timeout)
        raise ReasoningTimeout(f"reasoning call exceeded {timeout:.1f}s")

    # ---- Stage bodies --------------------------------------------------------

    async def _extract(
        self,
        run: PipelineRun,
        content: str | bytes,
        source_kind: SourceKind | str,
        *,
        size_bytes: int | None,
        cancel: asyncio.Event | None,
    ) -> list[Transaction]:
        kind = _source_kind(source_kind)

        run.advance(Stage.NORMALIZING)
        text = normalize_input(content, kind, size_bytes=size_bytes, settings=self.settings)
        if kind is SourceKind.PDF:
            prompt = prompting.build_pdf_extraction_prompt(text)
        else:
            prompt = prompting.build_csv_extraction_prompt(text)

        run.advance(Stage.EXTRACTING)
        _logger.info("extract_transactions:start kind=%s chars=%d", kind, len(text))
        raw = await self._complete(prompt, max_tokens=self.settings.max_tokens, cancel=cancel)

        run.advance(Stage.VALIDATING)
        try:
            payload = _decode_transactions_payload(raw)
        except NoJsonFound as e:
            _logger.warning("extract_transactions:no_json kind=%s raw=%r", kind, clip_raw(raw))
            raise extraction_format_error(kind, message=e.message, raw_response=raw) from e
        transactions = validate_transactions(payload, source_kind=kind)
        _logger.info("extract_transactions:done kind=%s count=%d", kind, len(transactions))
        return transactions

    async def _analyze(
        self,
        run: PipelineRun,
        transactions: Iterable[Transaction],
        *,
        cancel: asyncio.Event | None,
    ) -> Analysis:
        txs = list(transactions)
        if not txs:
            raise EmptyInput("no transactions supplied for analysis")

        run.advance(Stage.AGGREGATING)
        debits = aggregation.debit_transactions(txs)
        if not debits:
            _logger.info("analyze:no_debits count=%d", len(txs))
            return Analysis()

        spent = aggregation.total_spent(debits)
        prompt = prompting.build_analysis_prompt(debits, spent)
        _logger.info("analyze:start debits=%d", len(debits))
        raw = await self._complete(prompt, max_tokens=self.settings.max_tokens, cancel=cancel)
        try:
            payload = parse_analysis_response(raw)
        except NoJsonFound:
            _logger.warning("analyze:no_json raw=%r", clip_raw(raw))
            raise
        analysis = assemble_analysis(txs, payload)
        _logger.info(
            "analyze:done subscriptions=%d categories=%d",
            len(analysis.subscriptions),
            len(analysis.category_spending),
        )
        return analysis

    async def _tracked(self, run: PipelineRun, body: Awaitable[T]) -> T:
        try:
            result = await body
        except asyncio.CancelledError:
            run.fail("cancelled")
            raise
        except Exception as e:
            run.fail(type(e).__name__)
            raise
        run.complete()
        return result

    # ---- Public operations ---------------------------------------------------

    async def extract_transactions(
        self,
        content: str | bytes,
        source_kind: SourceKind | str,
        *,
        size_bytes: int | None = None,
        cancel: asyncio.Event | None = None,
        on_stage: StageCallback | None = None,
    ) -> list[Transaction]:
        """Extract validated transactions from CSV text or PDF-extracted text.

        Raises ``EmptyInput``, ``FileTooLarge``, ``ReasoningUnavailable``,
        ``ReasoningTimeout``, ``NoJsonFound``, ``NoTransactionsFound`` or
        ``AnalysisCancelled``.
        """

        run = PipelineRun(on_stage)
        return await self._tracked(
            run,
            self._extract(run, content, source_kind, size_bytes=size_bytes, cancel=cancel),
        )

    async def analyze(
        self,
        transactions: Iterable[Transaction],
        *,
        cancel: asyncio.Event | None = None,
        on_stage: StageCallback | None = None,
    ) -> Analysis:
        """Detect subscriptions, bucket spending and produce insights.

        Empty input raises ``EmptyInput`` without calling the engine; input
        without any debit yields a zero-total analysis, also without a call.
        """

        run = PipelineRun(on_stage)
        return await self._tracked(run, self._analyze(run, transactions, cancel=cancel))

    async def explain(self, analysis: Analysis, *, cancel: asyncio.Event | None = None) -> str:
        """Return a short advisory narrative for an assembled analysis."""

        prompt = prompting.build_explanation_prompt(analysis)
        raw = await self._complete(
            prompt, max_tokens=self.settings.insight_max_tokens, cancel=cancel
        )
        return raw.strip()

    async def run(
        self,
        content: str | bytes,
        source_kind: SourceKind | str,
        *,
        size_bytes: int | None = None,
        cancel: asyncio.Event | None = None,
        on_stage: StageCallback | None = None,
    ) -> Analysis:
        """Extract and analyze a statement under one stage tracker."""

        run = PipelineRun(on_stage)

        async def _body() -> Analysis:
            txs = await self._extract(
                run, content, source_kind, size_bytes=size_bytes, cancel=cancel
            )
            return await self._analyze(run, txs, cancel=cancel)

        return await self._tracked(run, _body())

    async def extract_transactions_from_file(
        self,
        path: str | PathLike[str],
        *,
        source_kind: SourceKind | str | None = None,
        cancel: asyncio.Event | None = None,
        on_stage: StageCallback | None = None,
    ) -> list[Transaction]:
        """Read a local CSV or PDF statement and extract its transactions.

        The kind is inferred from the file extension unless given. The size
        ceiling is enforced before the file is read.
        """

        p = Path(path)
        kind = _source_kind(source_kind) if source_kind else detect_source_kind(p.name)
        size = p.stat().st_size
        ensure_within_limit(size, kind, self.settings)
        data = p.read_bytes()
        content: str | bytes = data
        if kind is SourceKind.PDF:
            content = await asyncio.to_thread(extract_pdf_text, data)
        return await self.extract_transactions(
            content, kind, size_bytes=size, cancel=cancel, on_stage=on_stage
        )


__all__ = ["StatementPipeline"]
