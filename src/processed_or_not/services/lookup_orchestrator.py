from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence

from processed_or_not.core.metrics import (
    EXTERNAL_API_COUNT,
    EXTERNAL_API_DURATION,
    LOOKUP_OUTCOMES,
)
from processed_or_not.domain.models import (
    InputType,
    LookupOutcome,
    SourceError,
    SourceResult,
)
from processed_or_not.domain.ports import (
    ExternalApiError,
    ProductNotFoundError,
    ProductSourcePort,
    ProgressStorePort,
)

logger = logging.getLogger(__name__)


class LookupOrchestrator:
    """
    Fragt die Adapter strikt in der übergebenen Reihenfolge nacheinander ab.

    Der erste Adapter mit verwertbarem Treffer beendet den Lauf. Fehler oder
    Timeouts einzelner Quellen werden erfasst und der Lauf geht weiter. Nach
    jedem Versuch wird der Progress Store aktualisiert.
    """

    def __init__(
        self, store: ProgressStorePort, adapter_timeout: float | None = 10.0
    ) -> None:
        self._store = store
        self._timeout = adapter_timeout

    async def run(
        self,
        key: str,
        adapters: Sequence[ProductSourcePort],
        input_type: InputType = InputType.BARCODE,
        run_id: int | None = None,
    ) -> LookupOutcome:
        """
        Führt den Lookup für `key` aus.

        Ohne `run_id` wird der Key hier zurückgesetzt; Aufrufer, die den Reset
        selbst vor dem Start durchführen, reichen die erhaltene run_id durch.
        """
        if run_id is None:
            run_id = self._store.reset(key, total_sources=len(adapters))
        else:
            self._store.update(key, run_id=run_id, total_sources=len(adapters))

        tried: list[str] = []
        errors: list[SourceError] = []
        try:
            for adapter in adapters:
                if not self._store.is_current(key, run_id):
                    return self._superseded(key, input_type, tried, errors)

                self._store.update(key, run_id=run_id, current_source=adapter.name)
                result = await self._attempt(adapter, key, input_type)
                tried.append(result.source_name)
                if result.error_message:
                    errors.append(SourceError(source=result.source_name, message=result.error_message))

                # Während des Aufrufs abgelöst: auch ein Treffer gehört nicht mehr zu diesem Lauf
                if not self._store.is_current(key, run_id):
                    return self._superseded(key, input_type, tried, errors)

                if result.found and result.product is not None:
                    self._store.complete(
                        key, found=True, source_name=result.source_name, run_id=run_id
                    )
                    LOOKUP_OUTCOMES.labels(outcome="found").inc()
                    logger.info("Found '%s' in %s", key, result.source_name)
                    return LookupOutcome(
                        key=key,
                        input_type=input_type,
                        found=True,
                        product=result.product,
                        source_name=result.source_name,
                        tried_sources=tried,
                        errors=errors,
                    )

                self._store.update(key, run_id=run_id, completed_sources=tuple(tried))
        except asyncio.CancelledError:
            self._store.complete(key, found=False, error="Lookup cancelled", run_id=run_id)
            LOOKUP_OUTCOMES.labels(outcome="cancelled").inc()
            raise
        except Exception as e:
            logger.exception("Lookup for '%s' aborted", key)
            self._store.complete(key, found=False, error=str(e), run_id=run_id)
            LOOKUP_OUTCOMES.labels(outcome="error").inc()
            raise

        if not self._store.is_current(key, run_id):
            return self._superseded(key, input_type, tried, errors)

        self._store.complete(key, found=False, run_id=run_id)
        LOOKUP_OUTCOMES.labels(outcome="not_found").inc()
        logger.info(
            "'%s' not found in any of %d source(s) (%d error(s))", key, len(tried), len(errors)
        )
        return LookupOutcome(
            key=key,
            input_type=input_type,
            found=False,
            tried_sources=tried,
            errors=errors,
        )

    @staticmethod
    def _superseded(
        key: str, input_type: InputType, tried: list[str], errors: list[SourceError]
    ) -> LookupOutcome:
        logger.info("Lookup for '%s' superseded after %d source(s), stopping", key, len(tried))
        LOOKUP_OUTCOMES.labels(outcome="superseded").inc()
        return LookupOutcome(
            key=key,
            input_type=input_type,
            found=False,
            tried_sources=tried,
            errors=errors,
            superseded=True,
        )

    async def _attempt(
        self, adapter: ProductSourcePort, key: str, input_type: InputType
    ) -> SourceResult:
        name = adapter.name
        started = time.monotonic()
        try:
            product = await asyncio.wait_for(adapter.lookup(key, input_type), timeout=self._timeout)
        except ProductNotFoundError:
            status, result = "not_found", SourceResult(source_name=name, found=False)
        except TimeoutError:
            logger.warning("Source '%s' timed out for '%s'", name, key)
            status, result = "timeout", SourceResult(
                source_name=name, found=False, error_message=f"Timed out after {self._timeout:g}s"
            )
        except ExternalApiError as e:
            logger.warning("Source '%s' failed for '%s': %s", name, key, e.detail)
            status, result = "error", SourceResult(
                source_name=name, found=False, error_message=e.detail
            )
        except Exception as e:
            logger.warning("Source '%s' raised for '%s'", name, key, exc_info=True)
            status, result = "error", SourceResult(
                source_name=name, found=False, error_message=str(e) or type(e).__name__
            )
        else:
            if product.is_usable:
                status, result = "found", SourceResult(source_name=name, found=True, product=product)
            else:
                status, result = "not_found", SourceResult(source_name=name, found=False)
        finally:
            EXTERNAL_API_DURATION.labels(source=name).observe(time.monotonic() - started)

        EXTERNAL_API_COUNT.labels(source=name, status=status).inc()
        return result
