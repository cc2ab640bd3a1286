from datetime import datetime, timezone

import pytest

from webqa_forge.data import (
    ClassificationConfig,
    Element,
    ExecutionResult,
    ExecutionStatus,
    Priority,
    SynthesisConfig,
    TestCategory,
    TestSpecification,
    TrackerConfig,
)

FIXED_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        '--base-url',
        action='store',
        default=None,
        help='Base URL used for synthesized tests (overrides default)',
    )


@pytest.fixture
def base_url(request: pytest.FixtureRequest) -> str:
    return request.config.getoption('--base-url') or 'https://example.com'


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_TIME


@pytest.fixture
def login_page_elements():
    """The controls of a typical login page, as a crawler reports them."""
    return [
        Element.model_validate({
            'id': '1', 'type': 'button', 'selector': '#login-btn', 'text': 'Login',
            'attributes': {'id': 'login-btn', 'class': 'btn btn-primary'},
            'xpath': '//*[@id="login-btn"]', 'position': {'x': 100, 'y': 200},
        }),
        Element.model_validate({
            'id': '2', 'type': 'input', 'selector': 'input[name="email"]',
            'attributes': {'name': 'email', 'type': 'email', 'placeholder': 'Enter email'},
            'xpath': '//input[@name="email"]', 'position': {'x': 50, 'y': 150},
        }),
        Element.model_validate({
            'id': '3', 'type': 'input', 'selector': 'input[name="password"]',
            'attributes': {'name': 'password', 'type': 'password'},
            'xpath': '//input[@name="password"]', 'position': {'x': 50, 'y': 180},
        }),
        Element.model_validate({
            'id': '4', 'type': 'link', 'selector': 'a[href="/signup"]', 'text': 'Sign Up',
            'attributes': {'href': '/signup', 'class': 'link'},
            'xpath': '//a[@href="/signup"]', 'position': {'x': 200, 'y': 220},
        }),
        Element.model_validate({
            'id': '5', 'type': 'form', 'selector': '#contact-form',
            'attributes': {'id': 'contact-form', 'method': 'POST'},
            'xpath': '//*[@id="contact-form"]', 'position': {'x': 0, 'y': 100},
        }),
    ]


@pytest.fixture
def synthesis_config(base_url) -> SynthesisConfig:
    return SynthesisConfig(framework='playwright', base_url=base_url, include_negative_tests=True)


@pytest.fixture
def classification_config() -> ClassificationConfig:
    return ClassificationConfig(source_url='https://example.com')


@pytest.fixture
def tracker_config() -> TrackerConfig:
    return TrackerConfig(
        base_url='https://acme.atlassian.net',
        email='qa@acme.io',
        api_token='secret-token',
        project_key='QA',
        issue_type='Bug',
    )


def make_spec(spec_id='btn-test-0', priority=Priority.HIGH, category=TestCategory.FUNCTIONAL, covered=('1',)):
    return TestSpecification(
        id=spec_id,
        name=f'Spec {spec_id}',
        description='generated',
        framework='playwright',
        body='// body',
        covered_element_ids=covered,
        priority=priority,
        category=category,
    )


def make_result(spec_id='btn-test-0', status=ExecutionStatus.FAILED, error=None, result_id=None, artifact=None):
    return ExecutionResult(
        id=result_id or f'exec-{spec_id}',
        specification_id=spec_id,
        status=status,
        duration_ms=1200,
        error=error,
        artifact_ref=artifact,
        timestamp=FIXED_TIME,
    )


@pytest.fixture
def spec_factory():
    return make_spec


@pytest.fixture
def result_factory():
    return make_result
