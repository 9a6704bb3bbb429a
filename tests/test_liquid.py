from datetime import datetime

from quire.filters import install_filters
from quire.liquid import LiquidEnvironment, LiquidLoader, translate, translate_expression
from quire.renderers import MarkdownConverter


def make_env(loader=None):
    env = LiquidEnvironment(
        loader=loader,
        autoescape=False,
        keep_trailing_newline=True,
        extensions=["jinja2.ext.loopcontrols"],
    )
    install_filters(env, {}, MarkdownConverter())
    return env


def render(source, **context):
    return make_env().from_string(translate(source)).render(**context)


def test_filter_arguments_become_calls():
    assert translate_expression('post.date | date: "%b %d, %Y"') == 'post.date | date("%b %d, %Y")'
    assert translate_expression("title | upcase") == "title | upcase"


def test_filter_arguments_may_contain_colons_and_pipes():
    when = datetime(2014, 2, 10, 9, 5)
    assert render('{{ d | date: "%H:%M" }}', d=when) == "09:05"
    assert render('{{ "a" | append: "|b" }}') == "a|b"


def test_chained_filters():
    assert render('{{ "Hello" | append: " world" | upcase }}') == "HELLO WORLD"


def test_assign_and_capture():
    assert render("{% assign n = items | size %}{{ n }}", items=[1, 2, 3]) == "3"
    source = "{% capture greeting %}Hi {{ name }}{% endcapture %}{{ greeting }}!"
    assert render(source, name="Bob") == "Hi Bob!"


def test_unless_and_elsif():
    assert render("{% unless flag %}no{% endunless %}", flag=False) == "no"
    source = "{% if x == 1 %}one{% elsif x == 2 %}two{% else %}many{% endif %}"
    assert render(source, x=2) == "two"
    assert render(source, x=5) == "many"


def test_case_when():
    source = "{% case x %}{% when 1 %}one{% when 2, 3 %}few{% else %}many{% endcase %}"
    assert render(source, x=1) == "one"
    assert render(source, x=3) == "few"
    assert render(source, x=9) == "many"


def test_when_values_keep_string_literals():
    source = "{% case c %}{% when 'black or white' %}bw{% when 'red', 'blue' or 'green' %}colour{% else %}other{% endcase %}"
    assert render(source, c="black or white") == "bw"
    assert render(source, c="green") == "colour"
    assert render(source, c="black") == "other"


def test_for_loop_options():
    items = [1, 2, 3, 4]
    assert render("{% for i in items limit:2 offset:1 %}{{ i }}{% endfor %}", items=items) == "23"
    assert render("{% for i in items limit:2 %}{{ i }}{% endfor %}", items=items) == "12"
    assert render("{% for i in items reversed %}{{ i }}{% endfor %}", items=items) == "4321"


def test_ranges_and_forloop():
    assert render("{% for i in (1..3) %}{{ i }}{% endfor %}") == "123"
    source = "{% for i in items %}{{ forloop.index }}{% if forloop.last %}.{% endif %}{% endfor %}"
    assert render(source, items=["a", "b"]) == "12."
    source = "{% for i in items %}{{ forloop.rindex }}{% endfor %}"
    assert render(source, items=["a", "b", "c"]) == "321"


def test_contains_and_nil():
    assert render('{% if t contains "a" %}yes{% else %}no{% endif %}', t=None) == "no"
    assert render('{% if n contains "a" %}yes{% else %}no{% endif %}', n=5) == "no"
    assert render('{% if missing contains "a" %}yes{% else %}no{% endif %}') == "no"
    assert render('{% if tags contains "python" %}yes{% endif %}', tags=["python"]) == "yes"
    assert render('{% if title contains "Hello" %}yes{% endif %}', title="Hello there") == "yes"
    assert render("{% if value == nil %}none{% endif %}", value=None) == "none"


def test_nil_prints_empty():
    assert render("[{{ value }}][{{ nil }}]", value=None) == "[][]"


def test_size_first_last_properties():
    assert render("{{ items.size }} {{ items.first }} {{ items.last }}", items=[1, 2, 3]) == "3 1 3"
    assert render("{{ name.size }}", name="abcd") == "4"
    assert render("{% if items.size > 0 %}some{% else %}none{% endif %}", items=[]) == "none"
    assert render("{{ mapping.size }}", mapping={"a": 1, "b": 2}) == "2"


def test_mapping_keys_win_over_properties():
    assert render("{{ page.size }}", page={"size": "large"}) == "large"


def test_comments_are_removed_but_keep_line_numbers():
    source = "a\n{% comment %}\nhidden\n{% endcomment %}\nb"
    translated = translate(source)
    assert "hidden" not in translated
    assert translated.count("\n") == source.count("\n")
    assert render("a{% comment %}hidden{% endcomment %}b") == "ab"


def test_raw_blocks_are_untouched():
    assert render("{% raw %}{{ not | rendered: 1 }}{% endraw %}") == "{{ not | rendered: 1 }}"


def test_whitespace_control_is_kept():
    assert render("a  {%- if true -%}  b  {%- endif -%}  c") == "abc"


def test_include_with_parameters(tmp_path):
    (tmp_path / "greet.html").write_text("Hello {{ include.name | upcase }}", encoding="utf-8")
    (tmp_path / "plain.html").write_text("[{{ who }}]", encoding="utf-8")
    env = make_env(LiquidLoader(str(tmp_path)))
    template = env.from_string(translate('{% include greet.html name="bob" %}'))
    assert template.render() == "Hello BOB"
    template = env.from_string(translate("{% include plain.html %}"))
    assert template.render(who="me") == "[me]"


def test_include_parameters_can_be_variables(tmp_path):
    (tmp_path / "tags.html").write_text(
        "{% for tag in include.tags %}<{{ tag }}>{% endfor %}", encoding="utf-8"
    )
    env = make_env(LiquidLoader(str(tmp_path)))
    template = env.from_string(translate("{% include tags.html tags=page.tags %}"))
    assert template.render(page={"tags": ["a", "b"]}) == "<a><b>"


def test_highlight_block():
    output = render("{% highlight python %}x = 1{% endhighlight %}")
    assert output.startswith('<pre class="highlight"><code class="language-python"')
    assert "x" in output
