import time
from concurrent.futures import ThreadPoolExecutor

from converter.app.pipeline.variable_replacer import replace_variables


def _template_and_data(count: int):
    html = "\n".join(
        f'<div class="row">Field {i}: {{{{section{i % 10}.field{i}}}}}</div>'
        for i in range(count)
    )
    data = {}
    for i in range(count):
        data.setdefault(f"section{i % 10}", {})[f"field{i}"] = f"value {i}"
    return html, data


def test_500_variables_replace_in_under_one_second():
    html, data = _template_and_data(500)

    started = time.perf_counter()
    result = replace_variables(html, data)
    elapsed = time.perf_counter() - started

    assert elapsed < 1.0
    assert result.statistics.total_variables == 500
    assert result.statistics.replaced_variables == 500
    assert result.missing == []
    assert "{{" not in result.html


def test_concurrent_calls_do_not_share_state():
    html, data = _template_and_data(200)
    other_data = {
        section: {key: value.upper() for key, value in fields.items()}
        for section, fields in data.items()
    }

    def run(payload):
        return replace_variables(html, payload).html

    with ThreadPoolExecutor(max_workers=8) as pool:
        outputs = list(pool.map(run, [data, other_data] * 8))

    lower = run(data)
    upper = run(other_data)
    assert outputs == [lower, upper] * 8
    assert lower != upper
