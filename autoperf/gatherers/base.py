#!filepath: autoperf/gatherers/base.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Union, runtime_checkable

from autoperf.utils.errors import GathererError


@runtime_checkable
class Gatherer(Protocol):
    """
    Audit back-end contract (FROZEN)

    run(test, options)        -> response
    retrieve(result, options) -> response

    response: {"status": "Submitted" | "Retrieved" | "Error",
               "metadata": {...}?, "metrics": {...}?,
               "error": "text"?, "id": "backend id"?}

    Optional:
        batch_only: bool                      must be called in batch mode
        run_batch(tests, options)        -> [response, ...] aligned with tests
        retrieve_batch(results, options) -> [response, ...] aligned with results

    In batch mode "metrics" may be a list: one Result row per element.
    Any method may return an awaitable.
    """

    def run(self, test: Any, options: Any = None) -> Any: ...

    def retrieve(self, result: Any, options: Any = None) -> Any: ...


Response = Dict[str, Any]


def normalize_response(response: Any) -> Response:
    """
    Gatherers may answer None (nothing yet) or a dict; anything else is
    a protocol violation reported as an Error response.
    """
    if response is None:
        return {}
    if isinstance(response, dict):
        return response
    return {"status": "Error", "error": f"unexpected response type {type(response).__name__}"}


def batch_capable(gatherer: Any, method: str) -> bool:
    return callable(getattr(gatherer, method, None))


def is_batch_only(gatherer: Any) -> bool:
    return bool(getattr(gatherer, "batch_only", False))


def align_batch(responses: Optional[List[Any]], size: int) -> List[Union[Response, Exception]]:
    """
    A batch answer must hold one response per input; a short or missing
    answer turns the remainder into errors.
    """
    responses = list(responses or [])
    if len(responses) < size:
        missing = GathererError(f"batch returned {len(responses)} responses for {size} inputs")
        responses.extend([missing] * (size - len(responses)))
    return responses[:size]
