"""
Slot Broker

Protocol state machine of the upload service: decodes an inbound
exchange, dispatches discovery and slot requests, applies the size limit
and the access policy, and produces exactly one reply per exchange.
"""

import logging
from concurrent.futures import Executor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from datetime import datetime, timezone
from typing import Optional

from upload_broker.application.bounded_calls import call_with_timeout
from upload_broker.application.event_publisher import EventPublisher, create_default_publisher
from upload_broker.application.hooks import DISCO_INFO_HOOK, HookRegistry
from upload_broker.domain.access import AccessDecision, IAccessPolicy
from upload_broker.domain.errors import PolicyUnavailableError, SigningError, StanzaDecodeError
from upload_broker.domain.events import (
    DomainEvent,
    MalformedExchangeEvent,
    OversizeRequestRejectedEvent,
    PolicyUnavailableEvent,
    SlotDeniedEvent,
    SlotGrantedEvent,
)
from upload_broker.domain.protocol import (
    NS_HTTP_UPLOAD_0,
    DiscoInfo,
    FileTooLarge,
    Identity,
    Iq,
    Jid,
    SlotRequest,
    UploadSlot,
    XData,
    XDataField,
    decode_els,
    err_bad_request,
    err_forbidden,
    err_internal_server_error,
    err_not_acceptable,
    err_service_unavailable,
    make_error,
    make_iq_result,
)
from upload_broker.domain.protocol.translator import ITranslator
from upload_broker.domain.upload_slots import ServiceParameters, SlotIssuer, UploadRequest

logger = logging.getLogger(__name__)

IDENTITY_CATEGORY = "store"
IDENTITY_TYPE = "file"
REPLY_TYPES = ("result", "error")


class SlotBroker:
    """
    Stateless exchange handler.

    The parameter snapshot is passed in with every exchange so that one
    exchange is always handled against one snapshot, whatever reloads are
    queued behind it.
    """

    def __init__(
        self,
        issuer: SlotIssuer,
        policy: IAccessPolicy,
        translator: ITranslator,
        hooks: Optional[HookRegistry] = None,
        publisher: Optional[EventPublisher] = None,
        policy_timeout: Optional[float] = None,
        executor: Optional[Executor] = None,
    ):
        """
        Initialize SlotBroker.

        Args:
            issuer: Produces signed slots once a request is admitted
            policy: Access policy oracle
            translator: Localizes human-readable reply text
            hooks: Registry consulted for extra discovery data
            publisher: Receives domain events (defaults to logging them)
            policy_timeout: Seconds to wait for the policy oracle
            executor: Pool running bounded policy calls
        """
        self.issuer = issuer
        self.policy = policy
        self.translator = translator
        self.hooks = hooks or HookRegistry()
        self.publisher = publisher or create_default_publisher()
        self.policy_timeout = policy_timeout
        self.executor = executor

    def _publish(self, event_type, params: ServiceParameters, **fields) -> None:
        event: DomainEvent = event_type(
            aggregate_id=params.logical_host,
            occurred_at=datetime.now(timezone.utc),
            **fields,
        )
        self.publisher.publish(event)

    def handle_exchange(self, iq: Iq, params: ServiceParameters) -> Optional[Iq]:
        """
        Decode the payload of ``iq`` and handle it.

        A payload that fails to decode is answered with bad-request; decode
        errors never propagate to the caller. Replies (``result``/``error``)
        are never answered: they are logged and None is returned.
        """
        if iq.type in REPLY_TYPES:
            logger.warning(
                f"Dropping unexpected {iq.type} exchange {iq.id} from {iq.from_jid} "
                f"to {iq.to_jid}"
            )
            return None

        try:
            decoded = decode_els(iq)
        except StanzaDecodeError as e:
            self._publish(MalformedExchangeEvent, params,
                          sender=str(iq.from_jid), error_message=str(e))
            return make_error(iq, err_bad_request(str(e), iq.lang))
        return self.handle_iq(decoded, params)

    def handle_iq(self, iq: Iq, params: ServiceParameters) -> Iq:
        """Dispatch a decoded exchange to discovery or slot handling."""
        if iq.type == "get" and len(iq.sub_els) == 1:
            element = iq.sub_els[0]
            if isinstance(element, DiscoInfo):
                return self._handle_disco_info(iq, params)
            if isinstance(element, SlotRequest):
                return self._handle_slot_request(iq, element, params)
        return make_error(iq, err_bad_request())

    # -------------------------------------------------------------------------
    # Discovery
    # -------------------------------------------------------------------------

    def _handle_disco_info(self, iq: Iq, params: ServiceParameters) -> Iq:
        address = str(iq.to_jid)
        advice = self.hooks.run_fold(DISCO_INFO_HOOK, address, [], address, iq.lang)

        xdata = list(advice)
        if params.is_size_bounded:
            xdata.insert(0, XData(
                type="result",
                fields=(
                    XDataField(var="FORM_TYPE", values=(NS_HTTP_UPLOAD_0,), type="hidden"),
                    XDataField(var="max-file-size", values=(str(params.max_size),)),
                ),
            ))

        descriptor = DiscoInfo(
            identities=(Identity(
                category=IDENTITY_CATEGORY,
                type=IDENTITY_TYPE,
                name=self.translator.translate(iq.lang, params.service_name),
            ),),
            features=(NS_HTTP_UPLOAD_0,),
            xdata=tuple(xdata),
        )
        return make_iq_result(iq, descriptor)

    # -------------------------------------------------------------------------
    # Slot requests
    # -------------------------------------------------------------------------

    def _handle_slot_request(self, iq: Iq, element: SlotRequest,
                             params: ServiceParameters) -> Iq:
        request = UploadRequest(
            requester=iq.from_jid,
            filename=element.filename,
            size=element.size,
            content_type=element.content_type,
        )

        # size is checked before access: an oversize request from a denied
        # requester is reported as oversize
        if params.exceeds_limit(request.size):
            return self._reject_oversize(iq, request, params)

        try:
            decision = self._match_rule(params, request.requester)
        except PolicyUnavailableError as e:
            self._publish(PolicyUnavailableEvent, params,
                          requester=str(request.requester),
                          rule=params.access_policy, error_message=str(e))
            text = self.translator.translate(iq.lang, "Access policy unavailable")
            return make_error(iq, err_service_unavailable(text, iq.lang))

        if decision is not AccessDecision.ALLOW:
            self._publish(SlotDeniedEvent, params, requester=str(request.requester),
                          filename=request.filename, size=request.size)
            text = self.translator.translate(iq.lang, "Access denied")
            return make_error(iq, err_forbidden(text, iq.lang))

        try:
            slot = self.issuer.issue(params, request)
        except SigningError as e:
            logger.error(f"Failed to sign upload URL for {request.requester}: {e}")
            text = self.translator.translate(iq.lang, "Failed to generate upload slot")
            return make_error(iq, err_internal_server_error(text, iq.lang))

        self._publish(SlotGrantedEvent, params, requester=str(request.requester),
                      filename=request.filename, size=request.size,
                      get_url=slot.get_url)
        return make_iq_result(iq, UploadSlot(put_url=slot.put_url, get_url=slot.get_url))

    def _reject_oversize(self, iq: Iq, request: UploadRequest,
                         params: ServiceParameters) -> Iq:
        self._publish(OversizeRequestRejectedEvent, params,
                      requester=str(request.requester), filename=request.filename,
                      size=request.size, max_size=params.max_size)
        template = self.translator.translate(iq.lang, "File larger than {} bytes")
        error = err_not_acceptable(template.format(params.max_size), iq.lang)
        error = error.with_elements((FileTooLarge(max_file_size=params.max_size),))
        return make_error(iq, error)

    def _match_rule(self, params: ServiceParameters, requester: Jid) -> AccessDecision:
        try:
            decision = call_with_timeout(
                self.executor, self.policy_timeout, self.policy.match_rule,
                params.logical_host, params.access_policy, requester,
            )
        except FuturesTimeoutError as e:
            raise PolicyUnavailableError(
                f"Access rule {params.access_policy} timed out", e
            ) from e
        except Exception as e:
            raise PolicyUnavailableError(
                f"Access rule {params.access_policy} failed: {e}", e
            ) from e
        return decision
