import pytest

from boxdsync.workflows.template import TemplateSyntaxError, compile_template, is_truthy, render_template


def test_plain_substitution_and_unknown_placeholders():
    assert render_template("{{ title }} ({{year}}){{missing}}", {"title": "Heat", "year": "1995"}) == "Heat (1995)"


def test_booleans_and_lists_are_formatted():
    assert render_template("{{rewatch}} / {{tags}}", {"rewatch": True, "tags": ["a", "b"]}) == "true / a, b"


@pytest.mark.parametrize("value", [None, False, [], ()])
def test_if_block_suppressed_for_unset_values(value):
    assert render_template("[{{#if field}}shown{{/if}}]", {"field": value}) == "[]"


def test_if_block_suppressed_when_field_undefined():
    assert render_template("[{{#if field}}shown{{/if}}]", {}) == "[]"


def test_if_block_kept_for_set_values():
    assert render_template("{{#if field}}shown {{field}}{{/if}}", {"field": "x"}) == "shown x"


def test_each_block_repeats_body_with_item_placeholder():
    template = "directors:{{#each directors}}\n  - {{this}}{{/each}}\n"

    rendered = render_template(template, {"directors": ["John Carpenter", "Ridley Scott"]})

    assert rendered == "directors:\n  - John Carpenter\n  - Ridley Scott\n"


def test_each_block_with_empty_list_renders_nothing():
    template = "before|{{#each directors}}- {{this}}\n{{/each}}|after"

    assert render_template(template, {"directors": []}) == "before||after"


def test_blocks_nest():
    template = "{{#each tags}}{{#if rewatch}}R{{/if}}{{this}};{{/each}}"

    assert render_template(template, {"tags": ["a", "b"], "rewatch": True}) == "Ra;Rb;"


@pytest.mark.parametrize(
    "template",
    [
        "{{#if title}}never closed",
        "{{/each}}",
        "{{#each tags}}{{/if}}",
        "{{#if}}x{{/if}}",
    ],
)
def test_malformed_templates_raise(template):
    with pytest.raises(TemplateSyntaxError):
        compile_template(template)


def test_is_truthy():
    assert is_truthy("x")
    assert is_truthy(["x"])
    assert is_truthy(0)
    assert not is_truthy(None)
    assert not is_truthy([])
