"""Unit tests for failure description and error classification.

Tests cover:
- Built-in failure descriptors (Python exceptions, duck-typed objects)
- The httpx transport adapter
- Classification order and status code boundaries
- Validation payload shapes
- Classifier totality (never raises, always a taxonomy kind)
- Customisation through messages and overridable predicates
"""

import asyncio
import errno
import socket

import httpx
import pytest

from jetform.adapters import describe_httpx_error
from jetform.classifier import ErrorClassifier
from jetform.descriptor import describe
from jetform.errors import FormError, FormSubmissionError, HttpStatusError, ValidationFailure
from jetform.messages import MessageTable
from jetform.types import FormErrorKind, TransportErrorType


def make_status_error(status_code, json=None, text=None, method="POST", url="https://api.example.com/register"):
    request = httpx.Request(method, url)
    if json is not None:
        response = httpx.Response(status_code, json=json, request=request)
    else:
        response = httpx.Response(status_code, text=text or "", request=request)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)


class ApiFailure(Exception):
    """Duck-typed transport error exposing a status code and payload."""

    def __init__(self, status_code, payload=None):
        super().__init__(f"api failure {status_code}")
        self.status_code = status_code
        self.payload = payload


class Unprintable:
    def __str__(self):
        raise RuntimeError("cannot print")


@pytest.fixture
def classifier():
    return ErrorClassifier()


class TestDescribe:
    """Test the built-in failure descriptors."""

    def test_http_status_error(self):
        d = describe(HttpStatusError(503, {"message": "down"}))
        assert d.transport_type == TransportErrorType.BAD_RESPONSE
        assert d.status_code == 503
        assert d.payload == {"message": "down"}

    def test_validation_failure(self):
        d = describe(ValidationFailure({"email": ["invalid"]}))
        assert d.field_errors == {"email": ["invalid"]}

    def test_connection_refused(self):
        d = describe(ConnectionRefusedError(111, "Connection refused"))
        assert d.transport_type == TransportErrorType.CONNECTION_ERROR
        assert d.os_error_code == 111

    def test_read_timeout_message(self):
        d = describe(TimeoutError("read operation timed out"))
        assert d.transport_type == TransportErrorType.RECEIVE_TIMEOUT

    def test_cancelled(self):
        d = describe(asyncio.CancelledError())
        assert d.transport_type == TransportErrorType.CANCEL

    def test_duck_typed_status(self):
        d = describe(ApiFailure(404, {"detail": "missing"}))
        assert d.status_code == 404
        assert d.payload == {"detail": "missing"}

    def test_plain_string(self):
        d = describe("boom")
        assert d.transport_type == TransportErrorType.UNKNOWN
        assert d.message == "boom"

    def test_adapter_wins_over_builtin_rules(self):
        from jetform.descriptor import FailureDescriptor

        def adapter(error):
            return FailureDescriptor(transport_type=TransportErrorType.CANCEL)

        assert describe(ValueError("x"), [adapter]).transport_type == TransportErrorType.CANCEL

    def test_failing_adapter_is_skipped(self):
        def adapter(error):
            raise RuntimeError("adapter bug")

        assert describe(HttpStatusError(500), [adapter]).status_code == 500


class TestHttpxAdapter:
    """Test mapping of httpx exceptions."""

    def test_ignores_other_errors(self):
        assert describe_httpx_error(ValueError("x")) is None

    def test_streamed_response_body_not_read(self):
        """An unread streamed body should leave the payload empty, not fail."""
        request = httpx.Request("POST", "https://api.example.com/register")
        response = httpx.Response(
            422,
            stream=httpx.ByteStream(b'{"errors": {"email": ["taken"]}}'),
            request=request,
        )
        error = httpx.HTTPStatusError("HTTP 422", request=request, response=response)

        d = describe_httpx_error(error)

        assert d.status_code == 422
        assert d.payload is None
        assert d.metadata["requestPath"] == "/register"
        assert ErrorClassifier().classify(error).kind == FormErrorKind.CLIENT

    def test_status_error_with_json_payload(self):
        d = describe_httpx_error(make_status_error(422, json={"errors": {"email": ["taken"]}}))
        assert d.transport_type == TransportErrorType.BAD_RESPONSE
        assert d.status_code == 422
        assert d.payload == {"errors": {"email": ["taken"]}}
        assert d.metadata["requestMethod"] == "POST"
        assert d.metadata["requestPath"] == "/register"

    def test_status_error_with_text_payload(self):
        d = describe_httpx_error(make_status_error(502, text="<html>bad gateway</html>"))
        assert d.status_code == 502
        assert d.payload == "<html>bad gateway</html>"

    @pytest.mark.parametrize(
        "exc_class, expected",
        [
            (httpx.ConnectTimeout, TransportErrorType.CONNECTION_TIMEOUT),
            (httpx.WriteTimeout, TransportErrorType.SEND_TIMEOUT),
            (httpx.ReadTimeout, TransportErrorType.RECEIVE_TIMEOUT),
            (httpx.PoolTimeout, TransportErrorType.RECEIVE_TIMEOUT),
        ],
    )
    def test_timeouts(self, exc_class, expected):
        assert describe_httpx_error(exc_class("timed out")).transport_type == expected

    def test_connect_error_uses_os_errno(self):
        try:
            try:
                raise ConnectionRefusedError(111, "Connection refused")
            except ConnectionRefusedError as os_error:
                raise httpx.ConnectError("[Errno 111] Connection refused") from os_error
        except httpx.ConnectError as exc:
            d = describe_httpx_error(exc)
        assert d.transport_type == TransportErrorType.CONNECTION_ERROR
        assert d.os_error_code == 111

    def test_other_transport_error(self):
        d = describe_httpx_error(httpx.RemoteProtocolError("peer closed connection"))
        assert d.transport_type == TransportErrorType.UNKNOWN


class TestStatusBoundaries:
    """Test server/client/validation boundaries."""

    def test_500_is_server(self, classifier):
        err = classifier.classify(HttpStatusError(500))
        assert err.kind == FormErrorKind.SERVER
        assert err.status_code == 500
        assert err.message == "Internal server error. Please try again later."

    def test_404_is_client_not_found(self, classifier):
        err = classifier.classify(HttpStatusError(404))
        assert err.kind == FormErrorKind.CLIENT
        assert err.status_code == 404
        assert "not found" in err.message

    def test_422_with_errors_is_validation(self, classifier):
        err = classifier.classify(HttpStatusError(422, {"errors": {"email": ["invalid"]}}))
        assert err.kind == FormErrorKind.VALIDATION
        assert err.field_errors == {"email": ["invalid"]}
        assert err.status_code == 422

    def test_422_without_errors_is_client(self, classifier):
        err = classifier.classify(HttpStatusError(422, {"message": "nope"}))
        assert err.kind == FormErrorKind.CLIENT
        assert err.field_errors is None
        assert err.message == "Validation failed. Please check your input."

    def test_400_with_message_and_errors_is_validation(self, classifier):
        payload = {"message": "The given data was invalid.", "errors": {"name": "required"}}
        err = classifier.classify(HttpStatusError(400, payload))
        assert err.kind == FormErrorKind.VALIDATION
        assert err.field_errors == {"name": ["required"]}

    def test_409_with_errors_is_client(self, classifier):
        err = classifier.classify(HttpStatusError(409, {"errors": {"email": ["taken"]}}))
        assert err.kind == FormErrorKind.CLIENT

    def test_empty_errors_object_is_not_validation(self, classifier):
        err = classifier.classify(HttpStatusError(422, {"errors": {}}))
        assert err.kind == FormErrorKind.CLIENT

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404, 418, 429, 499])
    def test_4xx_without_payload_is_client(self, classifier, status_code):
        err = classifier.classify(HttpStatusError(status_code))
        assert err.kind == FormErrorKind.CLIENT
        assert err.status_code == status_code

    @pytest.mark.parametrize("status_code", [500, 502, 503, 504, 599])
    def test_5xx_is_server(self, classifier, status_code):
        err = classifier.classify(HttpStatusError(status_code, {"errors": {"a": ["b"]}}))
        assert err.kind == FormErrorKind.SERVER

    def test_duck_typed_status(self, classifier):
        err = classifier.classify(ApiFailure(401))
        assert err.kind == FormErrorKind.CLIENT
        assert err.message == "Authentication failed. Please log in again."

    def test_httpx_validation(self, classifier):
        err = classifier.classify(make_status_error(422, json={"errors": {"email": ["taken"]}}))
        assert err.kind == FormErrorKind.VALIDATION
        assert err.field_errors == {"email": ["taken"]}


class TestNetworkClassification:
    """Test no-internet, timeout and cancellation detection."""

    def test_connection_refused_is_no_internet(self, classifier):
        err = classifier.classify(ConnectionRefusedError(111, "Connection refused"))
        assert err.kind == FormErrorKind.NO_INTERNET
        assert err.message == "Please check your network settings."
        assert err.status_code is None

    def test_dns_failure_is_no_internet(self, classifier):
        err = classifier.classify(socket.gaierror(-2, "Name or service not known"))
        assert err.kind == FormErrorKind.NO_INTERNET

    def test_message_keywords_are_no_internet(self, classifier):
        err = classifier.classify(RuntimeError("No internet connection available"))
        assert err.kind == FormErrorKind.NO_INTERNET

    def test_keywords_ignored_when_response_received(self, classifier):
        err = classifier.classify(HttpStatusError(503, message="connection failed upstream"))
        assert err.kind == FormErrorKind.SERVER

    def test_connect_timeout_with_unreachable_host_is_no_internet(self, classifier):
        err = classifier.classify(TimeoutError(errno.ETIMEDOUT, "Connection timed out"))
        assert err.kind == FormErrorKind.NO_INTERNET

    def test_resolver_code_on_gaierror_is_no_internet(self, classifier):
        err = classifier.classify(socket.gaierror(8, "nodename nor servname provided, or not known"))
        assert err.kind == FormErrorKind.NO_INTERNET

    @pytest.mark.parametrize(
        "error",
        [
            OSError(errno.E2BIG, "Argument list too long"),
            OSError(errno.ENOEXEC, "Exec format error"),
            OSError(errno.ENOENT, "No such file or directory"),
        ],
    )
    def test_local_os_errors_are_unknown(self, classifier, error):
        """OS errors unrelated to sockets must not be reported as offline."""
        err = classifier.classify(error)
        assert err.kind == FormErrorKind.UNKNOWN
        assert err.message == str(error)

    def test_network_errno_on_plain_os_error(self, classifier):
        err = classifier.classify(OSError(errno.EHOSTUNREACH, "No route to host"))
        assert err.kind == FormErrorKind.NO_INTERNET

    def test_plain_timeout(self, classifier):
        err = classifier.classify(asyncio.TimeoutError())
        assert err.kind == FormErrorKind.TIMEOUT
        assert err.message == "Connection timeout. Please check your internet connection and try again."

    def test_httpx_read_timeout(self, classifier):
        err = classifier.classify(httpx.ReadTimeout("timed out"))
        assert err.kind == FormErrorKind.TIMEOUT
        assert err.message == "Receive timeout. Please try again."

    def test_httpx_connect_error_is_no_internet(self, classifier):
        err = classifier.classify(httpx.ConnectError("[Errno -3] Temporary failure in name resolution"))
        assert err.kind == FormErrorKind.NO_INTERNET

    def test_cancelled(self, classifier):
        err = classifier.classify(asyncio.CancelledError())
        assert err.kind == FormErrorKind.CANCELLED
        assert err.message == "Request was cancelled."


class TestUnknownAndPassthrough:
    """Test the fallback branch and FormError passthrough."""

    def test_plain_string(self, classifier):
        err = classifier.classify("boom")
        assert err.kind == FormErrorKind.UNKNOWN
        assert err.message == "boom"
        assert err.raw_error == "boom"

    def test_generic_exception_uses_its_text(self, classifier):
        err = classifier.classify(KeyError("email"))
        assert err.kind == FormErrorKind.UNKNOWN
        assert err.message == "'email'"

    def test_empty_exception_uses_default(self, classifier):
        err = classifier.classify(Exception())
        assert err.message == "An unknown error occurred"

    def test_keeps_exception_traceback(self, classifier):
        try:
            raise ValueError("bad value")
        except ValueError as exc:
            err = classifier.classify(exc)
        assert err.stack_trace is not None
        assert err.metadata["exceptionName"] == "ValueError"

    def test_form_error_passthrough(self, classifier):
        original = FormError.server(message="Down", status_code=500)
        assert classifier.classify(original) is original

    def test_explicit_validation_failure(self, classifier):
        err = classifier.classify(ValidationFailure({"email": "invalid"}, message="Fix the form"))
        assert err.kind == FormErrorKind.VALIDATION
        assert err.message == "Fix the form"
        assert err.field_errors == {"email": ["invalid"]}


class TestTotality:
    """classify must return a taxonomy kind for every input and never raise."""

    @pytest.mark.parametrize(
        "error",
        [
            "plain string",
            "",
            None,
            42,
            {"errors": "not an exception"},
            Exception("generic"),
            ValueError(),
            HttpStatusError(400),
            HttpStatusError(422, "not a dict"),
            HttpStatusError(422, {"errors": ["not", "a", "map"]}),
            HttpStatusError(599),
            ApiFailure(200),
            TimeoutError(),
            asyncio.CancelledError(),
            socket.gaierror(-3, "Temporary failure in name resolution"),
            ConnectionResetError(),
            OSError(101, "Network is unreachable"),
            Unprintable(),
            httpx.ReadTimeout("slow"),
            make_status_error(500),
        ],
    )
    def test_classify_is_total(self, classifier, error):
        err = classifier.classify(error)
        assert isinstance(err, FormError)
        assert err.kind in set(FormErrorKind)
        assert err.message
        if err.field_errors:
            assert err.kind == FormErrorKind.VALIDATION

    def test_nested_form_failure_keeps_its_classification(self, classifier):
        inner = FormError.validation(errors={"email": ["taken"]}, status_code=422)
        err = classifier.classify(FormSubmissionError(inner))
        assert err.kind == FormErrorKind.VALIDATION
        assert err.field_errors == {"email": ["taken"]}
        assert err.status_code == 422

    def test_broken_predicate_falls_back_to_unknown(self):
        class Broken(ErrorClassifier):
            def is_validation_error(self, descriptor):
                raise RuntimeError("bug")

        err = Broken().classify(HttpStatusError(500))
        assert err.kind == FormErrorKind.UNKNOWN
        assert err.message == "An unknown error occurred"


class TestCustomisation:
    """Test injected messages and overridden predicates."""

    def test_injected_message_table(self):
        table = MessageTable().with_overrides(client_status={404: "Introuvable"})
        err = ErrorClassifier(messages=table).classify(HttpStatusError(404))
        assert err.message == "Introuvable"

    def test_overridden_no_internet_detection(self):
        class Offline(ErrorClassifier):
            def is_no_internet_error(self, descriptor):
                return descriptor.exception_name == "OfflineError"

        class OfflineError(Exception):
            pass

        assert Offline().classify(OfflineError()).kind == FormErrorKind.NO_INTERNET

    def test_no_adapters(self):
        classifier = ErrorClassifier(adapters=[])
        err = classifier.classify(make_status_error(500))
        # Without the httpx adapter the response is still found by duck typing
        assert err.kind == FormErrorKind.SERVER
