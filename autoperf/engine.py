#!filepath: autoperf/engine.py
from __future__ import annotations

import copy
import inspect
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple, Union

from autoperf import logs
from autoperf.core.models import Result, Test
from autoperf.core.options import ActionOptions
from autoperf.core.scheduler import Scheduler
from autoperf.core.status import Status, StatusMachine, TestType
from autoperf.extensions.pipeline import ExtensionPipeline
from autoperf.gatherers.base import align_batch, batch_capable, is_batch_only, normalize_response
from autoperf.observability.instrumentation import NoOpInstrumentation
from autoperf.utils.datetime_utils import Clock, DateTimeUtils
from autoperf.utils.errors import ConnectorError
from autoperf.utils.pattern_filter import pattern_filter

DEFAULT_RETRIEVE_FILTERS = ['status!=="Retrieved"', 'status!=="Cancelled"']

# what a Gatherer may report for its own sub-object
GATHERER_STATUSES = (Status.SUBMITTED.value, Status.RETRIEVED.value, Status.ERROR.value)

Options = Union[ActionOptions, Mapping[str, Any], None]


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class RecurringOutcome(NamedTuple):
    tests: List[Test]
    results: List[Result]


class RetrieveOutcome(NamedTuple):
    results: List[Result]
    pending: int

    @property
    def has_pending(self) -> bool:
        return self.pending > 0


@dataclass
class _Draft:
    """Result rows of one Test while its back-ends answer."""

    test: Test
    rows: List[Result] = field(default_factory=list)
    backends: List[str] = field(default_factory=list)


class AutoWebPerf:
    """
    Orchestration engine (FINAL)

    run        load Tests -> filter -> dispatch per back-end -> append Results
    recurring  run the due Tests (type Recurring), then advance their triggers
    retrieve   load Results -> filter -> ask back-ends again -> update changed

    Failure model:
    - a Gatherer failing marks that back-end Error on that Result only
    - an Extension failing is logged, the action continues
    - a Connector failing aborts the action with ConnectorError
    """

    def __init__(
        self,
        connector: Any,
        gatherers: Optional[Mapping[str, Any]] = None,
        extensions: Union[ExtensionPipeline, Iterable[Tuple[str, Any]], None] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Clock = time.time,
        instrumentation: Any = None,
        run_by_batch: bool = False,
        batch_update_buffer: Optional[int] = None,
    ):
        self.connector = connector
        self.gatherers: Dict[str, Any] = dict(gatherers or {})
        if isinstance(extensions, ExtensionPipeline):
            self.extensions = extensions
        else:
            self.extensions = ExtensionPipeline(extensions)
        self.scheduler = scheduler or Scheduler()
        self.clock = clock
        self.inst = instrumentation or NoOpInstrumentation()
        self.run_by_batch = run_by_batch
        self.batch_update_buffer = batch_update_buffer

    # ==================================================
    # Actions
    # ==================================================
    async def run(self, options: Options = None) -> List[Result]:
        opts = ActionOptions.coerce(options)

        with self.inst.timer("action.run", record=False):
            tests = pattern_filter(await self._load_tests(opts), opts.filters)
            logs.info(f"[AutoWebPerf] run: {len(tests)} tests")

            results = await self._run_tests(tests, opts, TestType.SINGLE)
            await self._append_results(results, opts)

        self.inst.metrics.incr("results.created", len(results))
        self.inst.generate_timeline_report("run")
        return results

    async def recurring(self, options: Options = None) -> RecurringOutcome:
        opts = ActionOptions.coerce(options)
        now = self.clock()

        tests = pattern_filter(await self._load_tests(opts), opts.filters)

        if opts.activate_only:
            return await self._activate(tests, opts, now)

        due = [t for t in tests if self.scheduler.is_due(t, now)]
        logs.info(f"[AutoWebPerf] recurring: {len(due)}/{len(tests)} tests due")
        if not due:
            return RecurringOutcome([], [])

        with self.inst.timer("action.recurring", record=False):
            results = await self._run_tests(due, opts, TestType.RECURRING)
            # Results first: a failed Test save must not hide an audit
            await self._append_results(results, opts)

            for test in due:
                self.scheduler.advance(test, now)
            await self._store("update_test_list", due, opts)

        self.inst.metrics.incr("results.created", len(results))
        self.inst.generate_timeline_report("recurring")
        return RecurringOutcome(due, results)

    async def retrieve(self, options: Options = None) -> RetrieveOutcome:
        opts = ActionOptions.coerce(options)
        filters = opts.filters if opts.filters is not None else DEFAULT_RETRIEVE_FILTERS
        pipeline = self.extensions.select(opts.extensions)

        with self.inst.timer("action.retrieve", record=False):
            results = pattern_filter(await self._load_results(opts), filters)
            results = [r for r in results if StatusMachine.is_retrievable(r.status)]
            logs.info(f"[AutoWebPerf] retrieve: {len(results)} results")

            before = {id(r): r.to_record() for r in results}

            await pipeline.call("before_all_retrieves", results=results, options=opts)
            for result in results:
                await pipeline.call("before_retrieve", result=result, options=opts)

            await self._retrieve_results(results, opts)

            changed: List[Result] = []
            newly_retrieved: List[Result] = []
            modified = DateTimeUtils.to_millis(self.clock())
            for result in results:
                await pipeline.call("after_retrieve", result=result, options=opts)
                if result.to_record() == before[id(result)]:
                    continue
                result.modified_timestamp = modified
                changed.append(result)
                if Status(result.status) == Status.RETRIEVED:
                    newly_retrieved.append(result)

            await pipeline.call("after_all_retrieves", results=results, options=opts)

            if changed:
                await self._store("update_result_list", changed, opts)
            if newly_retrieved and hasattr(self.connector, "update_latest_results"):
                await self._store("update_latest_results", newly_retrieved, opts)

        pending = sum(1 for r in results if Status(r.status) == Status.SUBMITTED)
        self.inst.metrics.incr("results.retrieved", len(newly_retrieved))
        self.inst.metrics.incr("results.error", sum(1 for r in changed if Status(r.status) == Status.ERROR))
        self.inst.generate_timeline_report("retrieve")
        logs.info(f"[AutoWebPerf] retrieve: {len(changed)} changed, {pending} pending")
        return RetrieveOutcome(changed, pending)

    @staticmethod
    def get_overall_errors(result: Result) -> List[str]:
        """Error text of every back-end currently in Error."""
        errors = []
        for name, sub in AutoWebPerf._backend_subs(result):
            if sub["status"] == Status.ERROR.value:
                errors.append(f"[{name}] {sub.get('error') or 'unknown error'}")
        return errors

    # ==================================================
    # Recurring (activate only)
    # ==================================================
    async def _activate(self, tests: List[Test], opts: ActionOptions, now: float) -> RecurringOutcome:
        pipeline = self.extensions.select(opts.extensions)
        recurring = [t for t in tests if t.recurring is not None]

        await pipeline.call("before_all_runs", tests=recurring, options=opts)
        changed = []
        for test in recurring:
            await pipeline.call("before_run", test=test, options=opts)
            if self.scheduler.activate(test, now):
                changed.append(test)
            await pipeline.call("after_run", test=test, result=None, options=opts)
        await pipeline.call("after_all_runs", tests=recurring, results=[], options=opts)

        logs.info(f"[AutoWebPerf] activate: {len(changed)}/{len(recurring)} recurring tests updated")
        if changed:
            await self._store("update_test_list", changed, opts)
        return RecurringOutcome(changed, [])

    # ==================================================
    # Run internals
    # ==================================================
    def _backends_for(self, test: Test, opts: ActionOptions) -> List[str]:
        if test.gatherer:
            return [test.gatherer]
        if opts.gatherer:
            return [opts.gatherer]
        return list(self.gatherers)

    def _use_batch(self, gatherer: Any, opts: ActionOptions, method: str) -> bool:
        wanted = opts.run_by_batch or self.run_by_batch or is_batch_only(gatherer)
        return wanted and batch_capable(gatherer, method)

    async def _run_tests(self, tests: List[Test], opts: ActionOptions, test_type: TestType) -> List[Result]:
        pipeline = self.extensions.select(opts.extensions)

        await pipeline.call("before_all_runs", tests=tests, options=opts)
        for test in tests:
            await pipeline.call("before_run", test=test, options=opts)

        groups: Dict[str, List[int]] = {}
        for index, test in enumerate(tests):
            backends = self._backends_for(test, opts)
            if not backends:
                logs.warning(f"[AutoWebPerf] no gatherer for {test.url}, skipped")
            for name in backends:
                groups.setdefault(name, []).append(index)

        created = DateTimeUtils.to_millis(self.clock())
        drafts: Dict[int, _Draft] = {}

        for backend, members in groups.items():
            group = [tests[i] for i in members]
            gatherer = self.gatherers.get(backend)

            if gatherer is None:
                logs.error(f"[AutoWebPerf] gatherer {backend!r} is not configured")
                responses = [{"status": Status.ERROR.value, "error": "gatherer not configured"}] * len(group)
                batch = False
            elif is_batch_only(gatherer) and not batch_capable(gatherer, "run_batch"):
                responses = [{"status": Status.ERROR.value, "error": "batch-only gatherer without run_batch"}] * len(group)
                batch = False
            else:
                batch = self._use_batch(gatherer, opts, "run_batch")
                if batch:
                    responses = await self._call_batch(backend, gatherer.run_batch, group, opts)
                else:
                    responses = [await self._call(backend, gatherer.run, test, opts) for test in group]

            for index, response in zip(members, responses):
                draft = drafts.setdefault(index, _Draft(tests[index]))
                self._merge_run_response(draft, backend, response, batch, test_type, created)

        results: List[Result] = []
        seen: set = set()
        for index in sorted(drafts):
            draft = drafts[index]
            self._finalize_rows(draft)
            for row in draft.rows:
                row = self._unique(row, seen)
                results.append(row)
                await pipeline.call("after_run", test=draft.test, result=row, options=opts)

        await pipeline.call("after_all_runs", tests=tests, results=results, options=opts)
        return results

    def _merge_run_response(
        self,
        draft: _Draft,
        backend: str,
        response: Any,
        batch: bool,
        test_type: TestType,
        created: int,
    ) -> None:
        test = draft.test
        base = copy.deepcopy(test.backend(backend) or {})

        if isinstance(response, Exception):
            subs = [self._sub_object(base, {"status": Status.ERROR.value, "error": str(response) or repr(response)})]
            response = {}
        else:
            response = normalize_response(response)
            metrics = response.get("metrics")
            if batch and isinstance(metrics, list):
                # one row per element, an empty list still yields one row
                subs = [self._sub_object(base, {**response, "metrics": m}) for m in metrics or [{}]]
            else:
                subs = [self._sub_object(base, response)]

        if not draft.rows:
            result_id = str(response.get("id") or f"{created}-{test.url}")
            draft.rows.append(self._new_result(test, result_id, test_type, created))

        first = draft.rows[0]
        while len(draft.rows) < len(subs):
            sibling = self._new_result(test, f"{first.id}-{len(draft.rows) + 1}", test_type, created)
            for name in draft.backends:
                sub = first.backend(name)
                if sub is not None:
                    sibling.set_backend(name, copy.deepcopy(sub))
            draft.rows.append(sibling)

        for row, sub in zip(draft.rows, subs):
            row.set_backend(backend, sub)
        if len(subs) == 1:
            # a scalar answer is shared by every exploded row
            for row in draft.rows[1:]:
                row.set_backend(backend, copy.deepcopy(subs[0]))
        draft.backends.append(backend)

    @staticmethod
    def _sub_object(base: Dict[str, Any], response: Dict[str, Any]) -> Dict[str, Any]:
        sub = copy.deepcopy(base)
        status = response.get("status") or Status.SUBMITTED.value
        if status not in GATHERER_STATUSES:
            response = {"error": f"invalid status {status!r}"}
            status = Status.ERROR.value

        metadata = sub.get("metadata") if isinstance(sub.get("metadata"), dict) else {}
        metadata.update(response.get("metadata") or {})

        sub["status"] = status
        sub.setdefault("settings", {})
        sub["metadata"] = metadata
        sub["metrics"] = copy.deepcopy(response.get("metrics")) if response.get("metrics") is not None else {}
        if status == Status.ERROR.value:
            sub["error"] = response.get("error") or "unknown error"
        return sub

    @staticmethod
    def _new_result(test: Test, result_id: str, test_type: TestType, created: int) -> Result:
        return Result(
            id=result_id,
            type=test_type,
            status=Status.SUBMITTED,
            selected=False,
            label=test.label,
            url=test.url,
            createdTimestamp=created,
            modifiedTimestamp=created,
            errors=[],
        )

    def _finalize_rows(self, draft: _Draft) -> None:
        for position, row in enumerate(draft.rows):
            statuses = []
            for name in dict.fromkeys(draft.backends):
                sub = row.backend(name)
                if sub is None:
                    continue
                statuses.append(sub["status"])
                if sub["status"] == Status.ERROR.value:
                    row.add_error(name, sub["error"])

            target = StatusMachine.derive_overall_status(statuses) if position == 0 else Status.DUPLICATE
            row.status = StatusMachine.transition(row.status, target)

    @staticmethod
    def _unique(row: Result, seen: set) -> Result:
        if row.id not in seen:
            seen.add(row.id)
            return row
        n = 2
        while f"{row.id}-{n}" in seen:
            n += 1
        unique = row.model_copy(update={"id": f"{row.id}-{n}"})
        seen.add(unique.id)
        return unique

    async def _append_results(self, results: List[Result], opts: ActionOptions) -> None:
        if not results:
            return
        size = opts.batch_update_buffer or self.batch_update_buffer or len(results)
        for start in range(0, len(results), size):
            await self._store("append_result_list", results[start:start + size], opts)

    # ==================================================
    # Retrieve internals
    # ==================================================
    @staticmethod
    def _backend_subs(result: Result) -> List[Tuple[str, Dict[str, Any]]]:
        """
        Back-end sub-objects of a Result. Anything else in the extras
        (adapter addressing, extension output) is opaque, even when it
        happens to carry a "status" key.
        """
        return [
            (name, sub)
            for name, sub in result.extras.items()
            if isinstance(sub, dict) and sub.get("status") in GATHERER_STATUSES
        ]

    def _pending_backends(self, result: Result) -> List[str]:
        return [name for name, sub in self._backend_subs(result) if sub["status"] != Status.RETRIEVED.value]

    async def _retrieve_results(self, results: List[Result], opts: ActionOptions) -> None:
        groups: Dict[str, List[Result]] = {}
        for result in results:
            for name in self._pending_backends(result):
                groups.setdefault(name, []).append(result)

        for backend, group in groups.items():
            gatherer = self.gatherers.get(backend)
            if gatherer is None:
                logs.warning(f"[AutoWebPerf] gatherer {backend!r} is not configured, {len(group)} results left as is")
                continue

            if self._use_batch(gatherer, opts, "retrieve_batch"):
                responses = await self._call_batch(backend, gatherer.retrieve_batch, group, opts)
            else:
                responses = [await self._call(backend, gatherer.retrieve, result, opts) for result in group]

            for result, response in zip(group, responses):
                self._merge_retrieve_response(result, backend, response)

        for result in results:
            statuses = [sub["status"] for _, sub in self._backend_subs(result)]
            if not statuses:
                continue
            target = StatusMachine.derive_overall_status(statuses)
            if Status(result.status) != target and StatusMachine.can_transition(result.status, target):
                result.status = StatusMachine.transition(result.status, target)

    @staticmethod
    def _merge_retrieve_response(result: Result, backend: str, response: Any) -> None:
        sub = result.backend(backend)
        if isinstance(response, Exception):
            response = {"status": Status.ERROR.value, "error": str(response) or repr(response)}
        response = normalize_response(response)

        target = response.get("status") or Status.SUBMITTED.value
        if target not in GATHERER_STATUSES:
            response = {"error": f"invalid status {target!r}"}
            target = Status.ERROR.value
        failed = target == Status.ERROR.value
        if target == Status.SUBMITTED.value:
            # still pending: the back-end keeps its current status
            target = sub["status"]
        elif not StatusMachine.can_transition(sub["status"], target):
            response = {"error": f"invalid status change {sub['status']} -> {target}"}
            target, failed = Status.ERROR.value, True

        if isinstance(response.get("metadata"), dict):
            metadata = sub.get("metadata") if isinstance(sub.get("metadata"), dict) else {}
            metadata.update(response["metadata"])
            sub["metadata"] = metadata

        metrics = response.get("metrics")
        if isinstance(metrics, dict) and isinstance(sub.get("metrics"), dict):
            sub["metrics"].update(copy.deepcopy(metrics))
        elif metrics is not None:
            sub["metrics"] = copy.deepcopy(metrics)

        sub["status"] = target
        if failed:
            sub["error"] = response.get("error") or "unknown error"
            result.add_error(backend, sub["error"])
        elif target != Status.ERROR.value:
            sub.pop("error", None)

    # ==================================================
    # Adapter calls
    # ==================================================
    async def _call(self, backend: str, fn: Any, record: Any, opts: ActionOptions) -> Any:
        """One Gatherer round-trip; a raised exception becomes the response."""
        with self.inst.timer(f"gatherer.{fn.__name__}.{backend}"):
            try:
                return await _resolve(fn(record, opts))
            except Exception as e:
                logs.error(f"[AutoWebPerf] {backend}.{fn.__name__} failed for {record.url}: {e!r}")
                return e

    async def _call_batch(self, backend: str, fn: Any, records: List[Any], opts: ActionOptions) -> List[Any]:
        with self.inst.timer(f"gatherer.{fn.__name__}.{backend}"):
            try:
                responses = await _resolve(fn(records, opts))
            except Exception as e:
                logs.error(f"[AutoWebPerf] {backend}.{fn.__name__} failed for {len(records)} records: {e!r}")
                return [e] * len(records)
        return align_batch(responses, len(records))

    async def _store(self, method: str, *args: Any) -> Any:
        try:
            return await _resolve(getattr(self.connector, method)(*args))
        except ConnectorError:
            raise
        except Exception as e:
            raise ConnectorError(f"[AutoWebPerf] connector.{method} failed: {e}") from e

    async def _load_tests(self, opts: ActionOptions) -> List[Test]:
        return self._coerce_all(Test, await self._store("get_test_list", opts))

    async def _load_results(self, opts: ActionOptions) -> List[Result]:
        return self._coerce_all(Result, await self._store("get_result_list", opts))

    @staticmethod
    def _coerce_all(model: Any, records: Optional[Iterable[Any]]) -> List[Any]:
        coerced = []
        for position, record in enumerate(records or []):
            try:
                coerced.append(model.coerce(record))
            except ValueError as e:
                logs.error(f"[AutoWebPerf] invalid {model.__name__} record at {position} skipped: {e}")
        return coerced
