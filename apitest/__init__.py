"""
apitest - Declarative test harness for HTTP request handlers.

Describe the cases for one handler as data and run them uniformly::

    from apitest import Suite, HandlerCase, IsEqual, NotEmpty

    suite = Suite(route="/widgets", method="POST", handler=create_widget)

    cases = [
        HandlerCase(
            name="creates a widget",
            content='{"name": "x"}',
            want_status_code=201,
            assert_content_fields={"id": NotEmpty(), "name": IsEqual("x")},
        ),
        HandlerCase(
            name="rejects an empty name",
            content='{"name": ""}',
            want_status_code=400,
            want_err_message="name",
        ),
    ]

    suite.run_handler_tests(cases)

Components:
    - Suite / HandlerCase:    declared handler and scenarios
    - make_handler_request:   invoke a handler once and capture the response
    - validate_response:      status, body, error shape and field checks
    - IsEqual / NotEmpty:     built-in field assertion functions
    - HandlerTestCase:        unittest base reporting cases as sub-tests
    - HarnessConfig:          settings, loaded from APITEST_* env vars
"""

__version__ = "0.1.0"

from .assertions import AssertFunc, IsEqual, NotEmpty, assert_is_equal, assert_not_empty
from .cases import HandlerTestCase
from .config import HarnessConfig, get_config, load_config, override_settings, set_config
from .context import CaseContext, CaseFailed, Failure, FailureKind
from .faults import (
    BodyReadFault,
    ConfigInvalidFault,
    DecodeFault,
    DuplicateCaseFault,
    ErrorShapeDecodeFault,
    Fault,
    FaultDomain,
    FieldMapDecodeFault,
    HarnessFault,
    MissingFieldFault,
    UnacceptedStatusFault,
)
from .harness import HandlerReqParams, HandlerResult, make_handler_request
from .recorder import CapturedResponse, Request, ResponseRecorder, asgi_handler
from .suite import HandlerCase, HookPolicy, Suite
from .validator import ErrorBody, validate_response
from .values import JsonKind, JsonValue

__all__ = [
    # Suite
    "Suite",
    "HandlerCase",
    "HookPolicy",
    "HandlerTestCase",
    # Harness
    "HandlerReqParams",
    "HandlerResult",
    "make_handler_request",
    "Request",
    "ResponseRecorder",
    "CapturedResponse",
    "asgi_handler",
    # Validation
    "validate_response",
    "ErrorBody",
    "CaseContext",
    "CaseFailed",
    "Failure",
    "FailureKind",
    # Assertions
    "AssertFunc",
    "IsEqual",
    "NotEmpty",
    "assert_is_equal",
    "assert_not_empty",
    "JsonKind",
    "JsonValue",
    # Config
    "HarnessConfig",
    "load_config",
    "get_config",
    "set_config",
    "override_settings",
    # Faults
    "Fault",
    "FaultDomain",
    "HarnessFault",
    "BodyReadFault",
    "UnacceptedStatusFault",
    "DecodeFault",
    "ErrorShapeDecodeFault",
    "FieldMapDecodeFault",
    "MissingFieldFault",
    "DuplicateCaseFault",
    "ConfigInvalidFault",
]
