"""
Logging Event Handler

Infrastructure event handler for logging domain events.
Subscribes to domain events and logs them appropriately.
Domain layer remains unaware of logging infrastructure.
"""

import logging

from upload_broker.domain.events import (
    DomainEvent,
    MalformedExchangeEvent,
    OversizeRequestRejectedEvent,
    PolicyUnavailableEvent,
    RoutesReconciledEvent,
    ServiceParametersReloadedEvent,
    SlotDeniedEvent,
    SlotGrantedEvent,
)


class LoggingEventHandler:
    """
    Infrastructure event handler for logging broker events.

    Signed URLs are never logged; a granted slot is recorded by its
    download URL only.
    """

    def __init__(self, logger: logging.Logger):
        """
        Initialize with logger instance.

        Args:
            logger: Python logging.Logger instance
        """
        self.logger = logger

    def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event by logging it.

        Args:
            event: Domain event to log
        """
        try:
            if isinstance(event, SlotGrantedEvent):
                self._handle_slot_granted(event)
            elif isinstance(event, SlotDeniedEvent):
                self._handle_slot_denied(event)
            elif isinstance(event, OversizeRequestRejectedEvent):
                self._handle_oversize(event)
            elif isinstance(event, PolicyUnavailableEvent):
                self._handle_policy_unavailable(event)
            elif isinstance(event, MalformedExchangeEvent):
                self._handle_malformed(event)
            elif isinstance(event, RoutesReconciledEvent):
                self._handle_routes_reconciled(event)
            elif isinstance(event, ServiceParametersReloadedEvent):
                self._handle_reloaded(event)
            else:
                self.logger.debug(
                    f"Unhandled event: {event.__class__.__name__} "
                    f"(aggregate_id={event.aggregate_id})"
                )
        except Exception as e:
            # Log handler errors but don't fail the operation
            self.logger.error(
                f"Error in logging event handler for {event.__class__.__name__}: {e}",
                exc_info=True,
            )

    def _handle_slot_granted(self, event: SlotGrantedEvent) -> None:
        self.logger.info(
            f"Slot granted: host={event.aggregate_id}, requester={event.requester}, "
            f"filename={event.filename}, size={event.size}, get_url={event.get_url}"
        )

    def _handle_slot_denied(self, event: SlotDeniedEvent) -> None:
        self.logger.info(
            f"Denying HTTP upload slot request from {event.requester} "
            f"(host={event.aggregate_id}, filename={event.filename}, size={event.size})"
        )

    def _handle_oversize(self, event: OversizeRequestRejectedEvent) -> None:
        """Log a rejected oversize request with its declared size."""
        self.logger.warning(
            f"{event.requester} tried to upload too large file: {event.filename} "
            f"({event.size} > {event.max_size} bytes)"
        )

    def _handle_policy_unavailable(self, event: PolicyUnavailableEvent) -> None:
        self.logger.error(
            f"Access policy unavailable: host={event.aggregate_id}, "
            f"rule={event.rule}, requester={event.requester}, error={event.error_message}"
        )

    def _handle_malformed(self, event: MalformedExchangeEvent) -> None:
        self.logger.info(
            f"Malformed exchange from {event.sender} on {event.aggregate_id}: "
            f"{event.error_message}"
        )

    def _handle_routes_reconciled(self, event: RoutesReconciledEvent) -> None:
        self.logger.debug(
            f"Routes reconciled for {event.aggregate_id}: "
            f"registered={list(event.registered)}, unregistered={list(event.unregistered)}"
        )

    def _handle_reloaded(self, event: ServiceParametersReloadedEvent) -> None:
        self.logger.info(
            f"Service parameters reloaded for {event.aggregate_id}: "
            f"addresses={list(event.endpoint_addresses)}, max_size={event.max_size}"
        )
