"""Pytest configuration and fixtures for rubygraph tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from rubygraph_cli.ast_provider import RubyAstProvider


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path_factory, monkeypatch):
    """Point the settings file at an empty temp location for every test."""
    home = tmp_path_factory.mktemp("rubygraph_home")
    monkeypatch.setattr("rubygraph_cli.config.BASE_DIR", home)
    monkeypatch.setattr("rubygraph_cli.config.CONFIG_FILE", home / "config.toml")


@pytest.fixture(scope="session")
def ruby_provider() -> RubyAstProvider:
    """A Tree-sitter Ruby provider shared by the whole session."""
    return RubyAstProvider()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_app_path() -> Path:
    """Get path to the sample Ruby application."""
    return Path(__file__).parent / "fixtures" / "sample_app"


@pytest.fixture
def user_service_source() -> str:
    """A service class with public, class-level and private methods."""
    return '''class UserService
  def process(user)
    user.save
  end

  def self.call
    new.process
  end

  private

  def internal_method
    nil
  end
end
'''


@pytest.fixture
def three_unit_sources():
    """User -> UserService -> UserMailer call chain across three files."""
    return [
        ("user.rb", "class User\n  def register\n    UserService.persist(self)\n  end\nend\n"),
        ("user_service.rb", "class UserService\n  def self.persist(user)\n    UserMailer.welcome(user)\n  end\nend\n"),
        ("user_mailer.rb", "class UserMailer\n  def self.welcome(user)\n  end\nend\n"),
    ]
