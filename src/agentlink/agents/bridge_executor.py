"""Bridge-Executor agent: tracks bridge requests awaiting wallet confirmation.

A BRIDGE_EXEC_REQ is only recorded as a pending execution.  Running it
needs an outside confirmation step, modelled as two calls:
:meth:`~BridgeExecutorAgent.mark_execution_started` when the transaction is
submitted and :meth:`~BridgeExecutorAgent.complete_bridge_execution` when
it settles.  Completion moves the record to the history and answers the
requester with exactly one BRIDGE_EXEC_RESP.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Literal

from agentlink.agents.base import BaseAgent, Handler
from agentlink.agents.models import AgentConfig, BridgeConfig
from agentlink.core.executions import BridgeExecution, ExecutionStatus
from agentlink.errors import UnknownExecutionError
from agentlink.protocol.codec import bridge_execute_response
from agentlink.protocol.models import (
    AgentId,
    BridgeExecuteRequestPayload,
    Message,
    MessageType,
)

if TYPE_CHECKING:
    from agentlink.core.executions import ExecutionLogBackend
    from agentlink.transport.base import Transport

logger = logging.getLogger(__name__)


class BridgeExecutorAgent(BaseAgent):
    """Holds pending bridge executions and reports their outcome."""

    default_agent_id = AgentId.BRIDGE_EXECUTOR

    def __init__(
        self,
        config: AgentConfig,
        transport: Transport,
        bridge: BridgeConfig | None = None,
        *,
        execution_log: ExecutionLogBackend | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(config, transport, **kwargs)
        self.bridge = bridge or BridgeConfig()
        self.execution_log = execution_log
        self._pending: dict[str, BridgeExecution] = {}
        self._history: list[BridgeExecution] = []

    def handlers(self) -> dict[MessageType, Handler]:
        return {MessageType.BRIDGE_EXEC_REQ: self._handle_request}

    async def _handle_request(
        self, message: Message, payload: BridgeExecuteRequestPayload
    ) -> None:
        cid = message.correlation_id
        logger.info(
            "[%s] Bridge request %s: %s %s from %s to %s",
            self.agent_id, cid, payload.amount, payload.token,
            payload.source_chain, payload.target_chain,
        )
        self.update_conversation(
            cid,
            state="executing",
            source_chain=payload.source_chain,
            target_chain=payload.target_chain,
            token=payload.token,
            amount=payload.amount,
            recipient=payload.recipient,
        )
        self._pending[cid] = BridgeExecution(
            correlation_id=cid,
            source_chain=payload.source_chain,
            target_chain=payload.target_chain,
            token=payload.token,
            amount=payload.amount,
            recipient=payload.recipient,
            requested_by=message.from_,
        )
        logger.info("[%s] Execution %s pending wallet confirmation", self.agent_id, cid)
        self._emit(
            "bridge_requested",
            correlation_id=cid,
            source_chain=payload.source_chain,
            target_chain=payload.target_chain,
            token=payload.token,
            amount=payload.amount,
        )

    # ------------------------------------------------------------------
    # Confirmation steps
    # ------------------------------------------------------------------

    def mark_execution_started(self, correlation_id: str, transaction_hash: str) -> None:
        """Move a pending execution to ``executing``; no-op if none is pending."""
        execution = self._pending.get(correlation_id)
        if execution is None:
            logger.debug("[%s] No pending execution %s to start", self.agent_id, correlation_id)
            return

        execution.status = ExecutionStatus.EXECUTING
        execution.transaction_hash = transaction_hash
        execution.started_at = datetime.now(UTC)
        self.update_conversation(
            correlation_id, state="in_progress", transaction_hash=transaction_hash
        )
        logger.info(
            "[%s] Execution %s started (%s)", self.agent_id, correlation_id, transaction_hash
        )

    async def complete_bridge_execution(
        self,
        correlation_id: str,
        transaction_hash: str | None,
        status: Literal["success", "failed"],
        error: str | None = None,
    ) -> BridgeExecution | None:
        """Settle a pending execution and answer its requester.

        Returns the completed record, or ``None`` (and sends nothing) when no
        execution is pending under *correlation_id*.
        """
        execution = self._pending.pop(correlation_id, None)
        if execution is None:
            logger.error("[%s] No pending execution found for %s", self.agent_id, correlation_id)
            return None

        execution.status = ExecutionStatus(status)
        execution.transaction_hash = transaction_hash
        execution.completed_at = datetime.now(UTC)
        if error:
            execution.error = error
        self._history.append(execution)
        await self._persist(execution)

        self.update_conversation(
            correlation_id,
            state="completed" if status == "success" else "failed",
            transaction_hash=transaction_hash,
            error=error,
        )
        await self.send_message(
            bridge_execute_response(
                self.agent_id,
                execution.requested_by,
                status,
                transaction_hash,
                error,
                correlation_id,
            )
        )
        logger.info("[%s] Execution %s %s", self.agent_id, correlation_id, status)
        self._emit(
            "bridge_completed",
            correlation_id=correlation_id,
            status=status,
            transaction_hash=transaction_hash,
        )
        return execution

    async def _persist(self, execution: BridgeExecution) -> None:
        # The response is sent even when the backend fails.
        if self.execution_log is None:
            return
        try:
            await self.execution_log.save(execution)
        except Exception as exc:
            logger.exception(
                "[%s] Failed to persist execution %s", self.agent_id, execution.correlation_id
            )
            self._emit(
                "persist_failed", correlation_id=execution.correlation_id, error=str(exc)
            )

    async def simulate_bridge_execution(
        self, correlation_id: str, delay: float | None = None
    ) -> BridgeExecution | None:
        """Start and complete a pending execution with a synthetic hash.

        Raises:
            UnknownExecutionError: If nothing is pending under *correlation_id*.
        """
        if correlation_id not in self._pending:
            raise UnknownExecutionError(correlation_id)

        transaction_hash = "0x" + secrets.token_hex(32)
        self.mark_execution_started(correlation_id, transaction_hash)
        await asyncio.sleep(self.bridge.simulation_delay if delay is None else delay)
        return await self.complete_bridge_execution(correlation_id, transaction_hash, "success")

    # ------------------------------------------------------------------
    # Query surface
    # ------------------------------------------------------------------

    def get_pending_executions(self) -> list[BridgeExecution]:
        return list(self._pending.values())

    def get_execution(self, correlation_id: str) -> BridgeExecution | None:
        """Look up an execution, pending first, then history."""
        pending = self._pending.get(correlation_id)
        if pending is not None:
            return pending
        for execution in self._history:
            if execution.correlation_id == correlation_id:
                return execution
        return None

    def get_execution_history(self, limit: int = 50) -> list[BridgeExecution]:
        return self._history[-limit:] if limit > 0 else []
