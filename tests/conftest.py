import pytest
from prompt_audit.auditor import PromptAuditor
from prompt_audit.lexicon import Lexicon


@pytest.fixture(scope="session")
def lexicon():
    """Compile the default word lists once for the whole run."""
    return Lexicon.build()


@pytest.fixture
def auditor(lexicon):
    return PromptAuditor(lexicon)
