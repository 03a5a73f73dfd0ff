# Standard library imports
import json
import logging
import typing

# Third-party imports
import flask
import flask_cors
import werkzeug.exceptions

# Local imports
from config import Settings
from errors import AuthorizationError, CorsRejection, UpstreamError, ValidationError
from shipment_filter import lookup_shipment
from upstream import DataProviderClient, RecaptchaClient

logger = logging.getLogger(__name__)

HEALTH_MESSAGE = "Shipment Tracker Backend is running!"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def client_key(body: typing.Any = None) -> typing.Optional[str]:
    """
    Read the public key presented by the client.

    The query string wins; a top-level "key" field of a JSON object body is used otherwise.
    """
    key = flask.request.args.get("key")
    if key is None and isinstance(body, dict):
        key = body.get("key")
    return key


def require_public_key(settings: Settings, key: typing.Optional[str], message: str) -> None:
    # Shared-secret check only. The key ships inside the frontend bundle.
    if not key or key != settings.public_key:
        raise AuthorizationError(message)


def read_json_body() -> typing.Any:
    """Decode the raw request body as JSON, whatever the Content-Type header says."""
    try:
        return json.loads(flask.request.get_data())
    except ValueError as e:
        raise ValidationError("Request body must be JSON") from e


def create_app(
    settings: typing.Optional[Settings] = None,
    data_client: typing.Optional[DataProviderClient] = None,
    captcha_client: typing.Optional[RecaptchaClient] = None,
) -> flask.Flask:
    """
    Build the proxy application.

    Parameters:
    settings (Settings, optional): Service configuration. Read from the environment when omitted.
    data_client (DataProviderClient, optional): Client for the spreadsheet data provider.
    captcha_client (RecaptchaClient, optional): Client for the reCAPTCHA verification service.

    Returns:
    flask.Flask: The configured application.
    """
    settings = settings or Settings()
    data_client = data_client or DataProviderClient(
        settings.rgs_endpoint, settings.rgs_secret, timeout=settings.timeout
    )
    captcha_client = captcha_client or RecaptchaClient(
        settings.recaptcha_verify_url, settings.recaptcha_secret, timeout=settings.timeout
    )

    app = flask.Flask(__name__, static_folder=settings.static_folder)
    # Relay provider records with their keys in the order they were sent
    app.json.sort_keys = False

    flask_cors.CORS(
        app,
        origins="*" if settings.allow_any_origin else settings.origins,
        methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        supports_credentials=False,
    )

    logger.info(
        "Allowed origins: %s, public key configured: %s",
        settings.origins,
        bool(settings.public_key),
    )

    @app.before_request
    def check_origin() -> typing.Optional[flask.Response]:
        origin = flask.request.headers.get("Origin")
        logger.debug("Request origin: %s", origin)
        if not settings.is_origin_allowed(origin):
            logger.warning("CORS blocked origin: %s", origin)
            raise CorsRejection("Not allowed by CORS")
        if flask.request.method == "OPTIONS":
            return flask.Response(status=204)
        return None

    @app.errorhandler(CorsRejection)
    def handle_cors_rejection(e: CorsRejection) -> typing.Tuple[flask.Response, int]:
        return flask.jsonify(error=e.message), e.status_code

    @app.errorhandler(werkzeug.exceptions.HTTPException)
    def handle_http_error(e: werkzeug.exceptions.HTTPException) -> typing.Tuple[flask.Response, int]:
        return flask.jsonify(error=e.name), e.code

    @app.route("/", methods=["GET"])
    def health() -> flask.Response:
        return flask.Response(HEALTH_MESSAGE, mimetype="text/plain")

    @app.route("/api/getShipment", methods=["GET"])
    def get_shipment() -> typing.Tuple[flask.Response, int]:
        try:
            ref = flask.request.args.get("ref")
            if not ref:
                raise ValidationError("Missing ref parameter")
            require_public_key(
                settings,
                client_key(flask.request.get_json(silent=True)),
                "Invalid public key",
            )
            payload = data_client.fetch_shipment(ref)
            result = lookup_shipment(payload, ref)
            return flask.jsonify(result.model_dump()), 200
        except (ValidationError, AuthorizationError) as e:
            return flask.jsonify(error=e.message), e.status_code
        except UpstreamError:
            logger.exception("Error fetching shipment data")
            return flask.jsonify(error="Failed to fetch shipment data"), 500

    @app.route("/api/notify", methods=["POST"])
    def notify() -> typing.Tuple[flask.Response, int]:
        try:
            body = read_json_body()
            if settings.notify_require_key:
                require_public_key(settings, client_key(body), "Invalid or missing public key")
            logger.info("Incoming notify payload (%d bytes)", len(flask.request.get_data()))
            result = data_client.notify(flask.request.get_data())
            logger.debug("Provider notify response: %s", result)
            return flask.jsonify(result), 200
        except (ValidationError, AuthorizationError) as e:
            return flask.jsonify(success=False, error=e.message), e.status_code
        except UpstreamError:
            logger.exception("Notify proxy error")
            return flask.jsonify(success=False, error="Failed to notify"), 500

    @app.route("/api/verify-recaptcha", methods=["POST"])
    def verify_recaptcha() -> typing.Tuple[flask.Response, int]:
        try:
            body = flask.request.get_json(force=True, silent=True)
            token = body.get("token") if isinstance(body, dict) else None
            if not token:
                raise ValidationError("Missing token")
            result, raw = captcha_client.verify(token)
            if result.success:
                return flask.jsonify(success=True, message="Verification successful"), 200
            return flask.jsonify(success=False, message="Invalid reCAPTCHA", data=raw), 400
        except ValidationError as e:
            return flask.jsonify(success=False, message=e.message), e.status_code
        except UpstreamError:
            logger.exception("reCAPTCHA verification failed")
            return flask.jsonify(success=False, message="Server error"), 500

    return app


def main() -> None:
    settings = Settings()
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
    app = create_app(settings)
    logger.info("Shipment tracker backend running on port %s", settings.port)
    app.run(host=settings.host, port=settings.port)


if __name__ == '__main__':
    main()
