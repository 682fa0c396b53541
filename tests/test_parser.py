"""Tests for structural extraction of Ruby classes."""

import pytest

from rubygraph_cli.parser import SignatureRenderer, StructuralExtractor, parse_file, parse_source


def _extract(provider, source, renderer=None):
    root = provider.parse(source)
    return StructuralExtractor(renderer).extract(root, "unit.rb")


def _names(descriptor):
    return [m.name for m in descriptor.methods]


def test_parses_simple_class(ruby_provider, user_service_source):
    result = _extract(ruby_provider, user_service_source)

    assert result.qualified_name == "UserService"
    assert result.source_unit_id == "unit.rb"
    assert _names(result) == ["process", "call"]
    assert [m.is_class_level for m in result.methods] == [False, True]


def test_private_methods_are_excluded(ruby_provider, user_service_source):
    result = _extract(ruby_provider, user_service_source)
    assert "internal_method" not in _names(result)


def test_protected_methods_are_excluded(ruby_provider):
    source = "class A\n  protected\n  def guarded\n  end\n  public\n  def open\n  end\nend\n"
    result = _extract(ruby_provider, source)
    assert _names(result) == ["open"]


def test_visibility_does_not_leak_into_sibling_class(ruby_provider):
    source = '''module Shop
  class Cart
    private
    def secret
    end
  end

  class Order
    def total
    end
  end
end
'''
    result = _extract(ruby_provider, source)
    # the later class declaration owns the identity fields
    assert result.qualified_name == "Shop::Order"
    assert _names(result) == ["total"]


def test_captures_method_parameters_with_placeholder(ruby_provider):
    source = "class OrderProcessor\n  def process(order, options = {})\n  end\nend\n"
    result = _extract(ruby_provider, source)
    method = result.methods[0]

    assert method.name == "process"
    assert method.rendered_signature == "process(order, options = ...)"


def test_captures_literal_defaults_when_requested(ruby_provider):
    source = "class OrderProcessor\n  def process(order, options = {})\n  end\nend\n"
    result = _extract(ruby_provider, source, SignatureRenderer("literal"))
    assert result.methods[0].rendered_signature == "process(order, options = {})"


def test_renders_every_parameter_kind(ruby_provider):
    source = "class Runner\n  def run(a, *rest, key:, opt: 1, **opts, &blk)\n  end\nend\n"
    result = _extract(ruby_provider, source)
    assert result.methods[0].rendered_signature == "run(a, *rest, key:, opt: ..., **opts, &blk)"


def test_method_without_parameter_list_is_bare_name(ruby_provider):
    source = "class Report\n  def generate\n  end\n\n  def reset()\n  end\nend\n"
    result = _extract(ruby_provider, source)
    assert [m.rendered_signature for m in result.methods] == ["generate", "reset()"]


def test_unknown_rendering_policy_is_rejected():
    with pytest.raises(ValueError):
        SignatureRenderer("verbatim")


def test_captures_superclass(ruby_provider):
    result = _extract(ruby_provider, "class AdminUser < User\nend\n")
    assert result.qualified_name == "AdminUser"
    assert result.superclass_name == "User"


def test_captures_scoped_superclass(ruby_provider):
    result = _extract(ruby_provider, "class Importer < Admin::Base\nend\n")
    assert result.superclass_name == "Admin::Base"


def test_dynamic_superclass_is_dropped(ruby_provider):
    result = _extract(ruby_provider, "class Point < Struct.new(:x, :y)\nend\n")
    assert result.qualified_name == "Point"
    assert result.superclass_name is None


def test_later_class_without_superclass_clears_it(ruby_provider):
    result = _extract(ruby_provider, "class A < Base\nend\nclass B\nend\n")
    assert result.qualified_name == "B"
    assert result.superclass_name is None


def test_handles_namespaced_classes(ruby_provider):
    source = '''module Admin
  class ReportGenerator
    def generate
    end
  end
end
'''
    result = _extract(ruby_provider, source)
    assert result.qualified_name == "Admin::ReportGenerator"
    assert result.namespace == ("Admin",)


def test_nested_modules_accumulate(ruby_provider):
    source = "module Billing\n  module Stripe\n    class Client\n    end\n  end\nend\n"
    result = _extract(ruby_provider, source)
    assert result.qualified_name == "Billing::Stripe::Client"
    assert result.namespace == ("Billing", "Stripe")


def test_compact_class_name(ruby_provider):
    result = _extract(ruby_provider, "class Admin::Dashboard\nend\n")
    assert result.qualified_name == "Admin::Dashboard"


def test_singleton_class_methods_are_class_level(ruby_provider):
    source = '''class Config
  class << self
    def load(path)
    end

    private

    def cache
    end
  end

  def reload
  end
end
'''
    result = _extract(ruby_provider, source)
    assert [(m.name, m.is_class_level) for m in result.methods] == [
        ("load", True),
        ("reload", False),
    ]


def test_inline_private_def_only_hides_that_method(ruby_provider):
    source = "class Token\n  private def secret\n  end\n\n  def value\n  end\nend\n"
    result = _extract(ruby_provider, source)
    assert _names(result) == ["value"]


def test_private_with_symbol_hides_recorded_method(ruby_provider):
    source = "class Token\n  def secret\n  end\n\n  def value\n  end\n  private :secret\nend\n"
    result = _extract(ruby_provider, source)
    assert _names(result) == ["value"]


def test_private_class_method_hides_class_level_method(ruby_provider):
    source = "class Factory\n  def self.build\n  end\n  private_class_method :build\n\n  def build\n  end\nend\n"
    result = _extract(ruby_provider, source)
    assert [(m.name, m.is_class_level) for m in result.methods] == [("build", False)]


def test_methods_nested_in_method_bodies_are_ignored(ruby_provider):
    source = "class Outer\n  def setup\n    def helper\n    end\n  end\nend\n"
    result = _extract(ruby_provider, source)
    assert _names(result) == ["setup"]


def test_returns_none_without_class(ruby_provider):
    assert _extract(ruby_provider, "module Helpers\n  def self.slug(s)\n  end\nend\n") is None


def test_returns_none_for_syntax_errors(ruby_provider):
    assert parse_source("class Broken\n  def oops(\nend\n", "broken.rb", provider=ruby_provider) is None


def test_parse_source_logs_warning_on_syntax_error(ruby_provider, caplog):
    with caplog.at_level("WARNING"):
        parse_source("class Broken\n  def oops(\nend\n", "broken.rb", provider=ruby_provider)
    assert "broken.rb" in caplog.text


def test_parse_file(ruby_provider, sample_app_path):
    path = sample_app_path / "app" / "mailers" / "user_mailer.rb"
    result = parse_file(path, provider=ruby_provider)

    assert result.qualified_name == "UserMailer"
    assert result.source_unit_id == str(path)
    assert [m.rendered_signature for m in result.methods] == ["welcome(user)", "deliver(user, options = ...)"]
