"""
API Namespaces - Organized endpoint groups
"""

from concurrent.futures import TimeoutError as FutureTimeoutError

from flask import current_app, request
from flask_restx import Namespace, Resource

from upload_broker.api.v1.models import (
    error_response,
    exchange_model,
    hosts_response,
    module_options_request,
    reload_response,
)
from upload_broker.application.broker_supervisor import BrokerSupervisor
from upload_broker.config.broker_config import BrokerSettings, UploadModuleOptions
from upload_broker.domain.errors import (
    ApplicationError,
    ConfigurationError,
    ErrorCategory,
    HostNotFoundError,
    StanzaDecodeError,
    create_error_response,
)
from upload_broker.domain.protocol import decode_iq, encode_iq
from upload_broker.infrastructure.message_router import MessageRouter

# =============================================================================
# Exchange Namespace - Transport ingress
# =============================================================================

exchange_ns = Namespace("exchanges", description="Exchange routing operations")


@exchange_ns.route("")
class Exchanges(Resource):
    """Submit exchanges to the router"""

    @exchange_ns.doc("submit_exchange")
    @exchange_ns.expect(exchange_model)
    @exchange_ns.response(200, "Reply", exchange_model)
    @exchange_ns.response(202, "Routed, no reply expected")
    @exchange_ns.response(400, "Bad Request", error_response)
    @exchange_ns.response(504, "Exchange Timeout", error_response)
    def post(self):
        """
        Route an exchange and wait for its reply

        Requests (``get``/``set``) are answered with the reply produced by the
        broker owning the recipient address; exchanges to unknown addresses
        are answered with a service-unavailable error. Replies
        (``result``/``error``) are routed without waiting.
        """
        try:
            iq = decode_iq(request.get_json(silent=True))
        except StanzaDecodeError as e:
            return create_error_response(ErrorCategory.BAD_REQUEST, str(e), status_code=400)

        try:
            router = current_app.container.resolve(MessageRouter)
            settings = current_app.container.resolve(BrokerSettings)

            if iq.type in ("result", "error"):
                router.route(iq)
                return {"status": "routed"}, 202

            try:
                future = router.submit(iq)
            except ValueError as e:
                return create_error_response(ErrorCategory.BAD_REQUEST, str(e), status_code=400)

            try:
                reply = future.result(timeout=settings.exchange_timeout)
            except FutureTimeoutError:
                router.forget(iq)
                return create_error_response(
                    ErrorCategory.EXCHANGE_TIMEOUT,
                    f"No reply to exchange {iq.id} within {settings.exchange_timeout}s",
                    {"id": iq.id, "to": str(iq.to_jid)},
                    status_code=504,
                )

            return encode_iq(reply), 200

        except Exception as e:
            current_app.logger.exception(f"Unexpected error routing exchange {iq.id}: {e}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR,
                f"Unexpected error: {str(e)}",
                status_code=500,
            )


# =============================================================================
# Host Namespace - Broker administration
# =============================================================================

host_ns = Namespace("hosts", description="Upload broker administration")


@host_ns.route("")
class Hosts(Resource):
    """Running brokers"""

    @host_ns.doc("list_hosts")
    @host_ns.response(200, "Success", hosts_response)
    def get(self):
        """
        List logical hosts with a running broker

        Each host is returned with the endpoint addresses of its current
        parameter snapshot.
        """
        supervisor = current_app.container.resolve(BrokerSupervisor)
        hosts = [
            {"host": host, "addresses": list(addresses)}
            for host, addresses in sorted(supervisor.hosts().items())
        ]
        return {"hosts": hosts}, 200


@host_ns.route("/<string:host>/reload")
@host_ns.param("host", "The logical host")
class HostReload(Resource):
    """Reload broker options"""

    @host_ns.doc("reload_host")
    @host_ns.expect(module_options_request)
    @host_ns.response(202, "Reload queued", reload_response)
    @host_ns.response(400, "Invalid Configuration", error_response)
    @host_ns.response(404, "Host Not Found", error_response)
    def post(self, host):
        """
        Reload the options of a running broker

        Options are validated before anything is queued; the broker swaps to
        the new snapshot only after its routes have been reconciled.
        """
        data = request.get_json(silent=True)
        if data is None:
            return create_error_response(
                ErrorCategory.INVALID_CONFIGURATION,
                "Request body must be a JSON object",
                status_code=400,
            )

        try:
            supervisor = current_app.container.resolve(BrokerSupervisor)
            supervisor.get(host)
            options = UploadModuleOptions.from_mapping(data)
            supervisor.reload(host, options)
            return {"host": host, "status": "queued"}, 202

        except HostNotFoundError as e:
            return create_error_response(
                e.category, e.technical_message, e.context, status_code=404
            )
        except ConfigurationError as e:
            context = {"option": e.option} if e.option else None
            return create_error_response(
                ErrorCategory.INVALID_CONFIGURATION, str(e), context, status_code=400
            )
        except ApplicationError as e:
            return create_error_response(e.category, e.technical_message, status_code=400)
        except Exception as e:
            current_app.logger.exception(f"Error reloading host {host}: {str(e)}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR,
                f"Internal server error: {str(e)}",
                status_code=500,
            )
