import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]


def _install(session: nox.Session) -> None:
    """Install the project with the test extra into the nox virtualenv."""
    session.install("-e", ".[test]")


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run domain-layer tests only (no infrastructure required)."""
    _install(session)
    session.run("pytest", "tests/domain/", "tests/bdd/")


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_integration(session: nox.Session) -> None:
    """Run the HTTP and WebSocket tests against the FastAPI app."""
    _install(session)
    session.run("pytest", "-m", "integration")
