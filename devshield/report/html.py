"""Self-contained HTML report writer."""

from __future__ import annotations

import os
from datetime import datetime

from jinja2 import Environment

from devshield.schema import ScanResult, Severity

_COLORS = {
    Severity.CRITICAL.value: "#dc2626",
    Severity.HIGH.value: "#ea580c",
    Severity.MEDIUM.value: "#d97706",
    Severity.LOW.value: "#2563eb",
    Severity.INFO.value: "#6b7280",
}

_BG_COLORS = {
    Severity.CRITICAL.value: "#fef2f2",
    Severity.HIGH.value: "#fff7ed",
    Severity.MEDIUM.value: "#fffbeb",
    Severity.LOW.value: "#eff6ff",
    Severity.INFO.value: "#f9fafb",
}


def severity_color(severity: Severity | str) -> str:
    """Foreground colour for a severity; unknown severities are grey."""
    return _COLORS.get(str(severity), "#6b7280")


def severity_bg_color(severity: Severity | str) -> str:
    """Background colour for a severity; unknown severities are light grey."""
    return _BG_COLORS.get(str(severity), "#f9fafb")


def format_duration(seconds: float) -> str:
    """Milliseconds below one second, otherwise seconds with one decimal."""
    nanos = int(seconds * 1_000_000_000)
    if nanos < 1_000_000_000:
        millis = abs(nanos) // 1_000_000
        return f"{-millis if nanos < 0 else millis}ms"
    return f"{nanos / 1_000_000_000:.1f}s"


# Theme variables for the dark report page; severity accents are (solid, tint).
_THEME = {
    "bg": "#0f172a",
    "surface": "#1e293b",
    "surface-2": "#334155",
    "border": "#475569",
    "text": "#f1f5f9",
    "text-muted": "#94a3b8",
    "accent": "#818cf8",
    "accent-glow": "rgba(129, 140, 248, 0.2)",
    "success": "#22c55e",
    "radius": "12px",
    "shadow": "0 4px 6px -1px rgba(0,0,0,0.3), 0 2px 4px -2px rgba(0,0,0,0.2)",
}

_SEVERITY_ACCENTS = {
    "critical": ("#ef4444", "rgba(239, 68, 68, 0.15)"),
    "high": ("#f97316", "rgba(249, 115, 22, 0.15)"),
    "medium": ("#eab308", "rgba(234, 179, 8, 0.15)"),
    "low": ("#3b82f6", "rgba(59, 130, 246, 0.15)"),
    "info": ("#6b7280", "rgba(107, 114, 128, 0.15)"),
}

_PANEL = {
    "background": "var(--surface)",
    "border": "1px solid var(--border)",
    "border-radius": "var(--radius)",
    "box-shadow": "var(--shadow)",
}

_RULES: list[tuple[str, dict[str, str]]] = [
    ("*", {"margin": "0", "padding": "0", "box-sizing": "border-box"}),
    ("body", {
        "font-family": "'Segoe UI', system-ui, -apple-system, sans-serif",
        "background": "var(--bg)", "color": "var(--text)",
        "line-height": "1.6", "min-height": "100vh",
    }),
    (".container", {"max-width": "1200px", "margin": "0 auto", "padding": "2rem"}),
    (".header", {
        **_PANEL,
        "background": "linear-gradient(135deg, var(--surface), var(--surface-2))",
        "padding": "2rem", "margin-bottom": "1.5rem",
    }),
    (".header h1", {
        "font-size": "1.75rem", "font-weight": "700", "margin-bottom": "0.5rem",
        "background": "linear-gradient(135deg, var(--accent), #a78bfa)",
        "-webkit-background-clip": "text", "-webkit-text-fill-color": "transparent",
    }),
    (".header .meta", {
        "color": "var(--text-muted)", "font-size": "0.875rem",
        "display": "flex", "gap": "1.5rem", "flex-wrap": "wrap",
    }),
    (".header .meta span", {"display": "flex", "align-items": "center", "gap": "0.375rem"}),
    (".summary-grid", {
        "display": "grid", "gap": "1rem", "margin-bottom": "1.5rem",
        "grid-template-columns": "repeat(auto-fit, minmax(140px, 1fr))",
    }),
    (".summary-card", {
        **_PANEL, "padding": "1.25rem", "text-align": "center",
        "transition": "transform 0.2s, border-color 0.2s",
    }),
    (".summary-card:hover", {"transform": "translateY(-2px)", "border-color": "var(--accent)"}),
    (".summary-card .count", {
        "font-size": "2rem", "font-weight": "800",
        "line-height": "1", "margin-bottom": "0.25rem",
    }),
    (".summary-card .label", {
        "font-size": "0.75rem", "text-transform": "uppercase",
        "letter-spacing": "0.05em", "color": "var(--text-muted)",
    }),
    (".count-total", {"color": "var(--accent)"}),
    (".section", {**_PANEL, "margin-bottom": "1.5rem", "overflow": "hidden"}),
    (".section-header", {
        "padding": "1rem 1.5rem", "border-bottom": "1px solid var(--border)",
        "font-weight": "600", "font-size": "1rem", "display": "flex",
        "justify-content": "space-between", "align-items": "center",
    }),
    (".tools-grid", {
        "display": "grid", "gap": "0.75rem", "padding": "1rem 1.5rem",
        "grid-template-columns": "repeat(auto-fill, minmax(250px, 1fr))",
    }),
    (".tool-badge", {
        "display": "flex", "align-items": "center", "gap": "0.5rem",
        "background": "var(--surface-2)", "border-radius": "8px",
        "padding": "0.625rem 0.875rem", "font-size": "0.825rem",
    }),
    (".tool-badge .dot", {
        "width": "8px", "height": "8px", "border-radius": "50%", "flex-shrink": "0",
    }),
    (".dot-ok", {"background": "var(--success)", "box-shadow": "0 0 6px var(--success)"}),
    (".dot-err", {"background": "var(--critical)", "box-shadow": "0 0 6px var(--critical)"}),
    (".tool-badge .tool-findings", {
        "margin-left": "auto", "color": "var(--text-muted)", "font-size": "0.75rem",
    }),
    (".filter-bar", {
        "padding": "0.75rem 1.5rem", "border-bottom": "1px solid var(--border)",
        "display": "flex", "gap": "0.5rem", "flex-wrap": "wrap",
    }),
    (".filter-btn", {
        "padding": "0.375rem 0.75rem", "border-radius": "6px",
        "border": "1px solid var(--border)", "background": "transparent",
        "color": "var(--text-muted)", "font-size": "0.75rem",
        "cursor": "pointer", "transition": "all 0.15s",
    }),
    (".filter-btn:hover, .filter-btn.active", {
        "background": "var(--accent-glow)", "border-color": "var(--accent)",
        "color": "var(--text)",
    }),
    ("table", {"width": "100%", "border-collapse": "collapse"}),
    ("th", {
        "text-align": "left", "padding": "0.75rem 1rem", "font-size": "0.75rem",
        "text-transform": "uppercase", "letter-spacing": "0.05em",
        "color": "var(--text-muted)", "border-bottom": "1px solid var(--border)",
        "position": "sticky", "top": "0", "background": "var(--surface)",
    }),
    ("td", {
        "padding": "0.75rem 1rem", "border-bottom": "1px solid rgba(71,85,105,0.3)",
        "font-size": "0.85rem", "vertical-align": "top",
    }),
    ("tr:hover td", {"background": "rgba(129, 140, 248, 0.05)"}),
    ("tr.suppressed td", {"opacity": "0.5", "text-decoration": "line-through"}),
    (".severity-badge", {
        "display": "inline-block", "padding": "0.125rem 0.5rem",
        "border-radius": "4px", "font-size": "0.7rem", "font-weight": "700",
        "text-transform": "uppercase", "letter-spacing": "0.03em",
    }),
    (".file-link", {"color": "var(--accent)", "word-break": "break-all"}),
    (".finding-title", {"font-weight": "500"}),
    (".footer", {
        "text-align": "center", "padding": "2rem",
        "color": "var(--text-muted)", "font-size": "0.75rem",
    }),
    (".no-findings", {
        "padding": "3rem", "text-align": "center",
        "color": "var(--success)", "font-size": "1.25rem",
    }),
    (".no-findings .icon", {"font-size": "3rem", "margin-bottom": "0.5rem"}),
]

_NARROW_RULES: list[tuple[str, dict[str, str]]] = [
    (".container", {"padding": "1rem"}),
    (".summary-grid", {"grid-template-columns": "repeat(3, 1fr)"}),
    ("th:nth-child(n+4), td:nth-child(n+4)", {"display": "none"}),
]


def _css_block(selector: str, declarations: dict[str, str]) -> str:
    body = "; ".join(f"{prop}: {value}" for prop, value in declarations.items())
    return f"{selector} {{ {body}; }}"


def _stylesheet() -> str:
    variables = dict(_THEME)
    for level, (solid, tint) in _SEVERITY_ACCENTS.items():
        variables[level] = solid
        variables[f"{level}-bg"] = tint
    blocks = [_css_block(":root", {f"--{name}": value for name, value in variables.items()})]
    blocks.extend(_css_block(selector, decls) for selector, decls in _RULES)
    for level in _SEVERITY_ACCENTS:
        blocks.append(_css_block(f".count-{level}", {"color": f"var(--{level})"}))
        blocks.append(_css_block(
            f".sev-{level}",
            {"background": f"var(--{level}-bg)", "color": f"var(--{level})"},
        ))
    narrow = " ".join(_css_block(selector, decls) for selector, decls in _NARROW_RULES)
    blocks.append(f"@media (max-width: 768px) {{ {narrow} }}")
    return "\n".join(blocks)


_SUMMARY_CARDS = [
    ("critical", "Critical"),
    ("high", "High"),
    ("medium", "Medium"),
    ("low", "Low"),
    ("info", "Info"),
    ("total", "Total"),
]

_SCRIPT = """
for (const button of document.querySelectorAll('.filter-btn')) {
  button.addEventListener('click', () => {
    button.classList.toggle('active');
    applyFilter();
  });
}
function applyFilter() {
  const wanted = Array.from(document.querySelectorAll('.filter-btn.active'), b => b.dataset.severity);
  for (const row of document.querySelectorAll('tbody tr')) {
    if (!wanted.length) { row.style.display = ''; continue; }
    const badge = row.querySelector('.severity-badge');
    if (!badge) continue;
    const level = badge.textContent.trim().toLowerCase();
    row.style.display = wanted.includes(level) ? '' : 'none';
  }
}
"""

_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>DevShield Security Report</title>
<style>
{{ stylesheet|safe }}
</style>
</head>
<body>
<div class="container">
  <header class="header">
    <h1>🛡 DevShield Security Report</h1>
    <div class="meta">
      <span>📁 {{ result.project_path }}</span>
      <span>⏱ {{ format_duration(result.scan_duration_seconds) }}</span>
      <span>📅 {{ generated }}</span>
      <span>🏷 v{{ result.version }}</span>
    </div>
  </header>

  <section class="summary-grid">
  {%- for key, label in summary_cards %}
    <div class="summary-card"><div class="count count-{{ key }}">{{ result.summary|attr(key) }}</div><div class="label">{{ label }}</div></div>
  {%- endfor %}
  </section>

  <section class="section">
    <div class="section-header">
      <span>🔧 Scanners</span>
      <span style="font-size:0.75rem;color:var(--text-muted);">{{ result.tools_used|length }} tools ran</span>
    </div>
    <div class="tools-grid">
    {%- for tool in result.tools_used %}
      <div class="tool-badge">
        <span class="dot {{ 'dot-err' if tool.error else 'dot-ok' }}"></span>
        <strong>{{ tool.name }}</strong>
        <span style="color:var(--text-muted);font-size:0.75rem;">v{{ tool.version }}</span>
        <span class="tool-findings">{{ tool.findings_count }} findings</span>
      </div>
    {%- endfor %}
    </div>
  </section>

  <section class="section">
    <div class="section-header">
      <span>🔍 Findings</span>
      <span style="font-size:0.75rem;color:var(--text-muted);">{{ result.summary.total }} active</span>
    </div>
  {%- if result.summary.total == 0 %}
    <div class="no-findings">
      <div class="icon">✅</div>
      <div>No security findings detected — your project looks clean!</div>
    </div>
  {%- else %}
    <div style="overflow-x:auto;">
      <table>
        <thead><tr><th style="width:90px">Severity</th><th>Finding</th><th>File</th><th>Tool</th><th>Rule</th></tr></thead>
        <tbody>
        {%- for finding in result.findings if not finding.suppressed %}
          {%- set level = finding.severity|string %}
          <tr>
            <td><span class="severity-badge sev-{{ level }}">{{ level|upper }}</span></td>
            <td class="finding-title">{{ finding.title }}</td>
            <td class="file-link">{{ finding.file }}{% if finding.line > 0 %}:{{ finding.line }}{% endif %}</td>
            <td>{{ finding.tool }}</td>
            <td style="color:var(--text-muted);font-size:0.75rem;">{{ finding.rule_id }}</td>
          </tr>
        {%- endfor %}
        </tbody>
      </table>
    </div>
  {%- endif %}
  </section>

  <footer class="footer">
    Generated by DevShield v{{ result.version }}<br>
    Open-source DevSecOps platform — privacy-first, no telemetry
  </footer>
</div>
<script>{{ script|safe }}</script>
</body>
</html>
"""

_environment = Environment(autoescape=True, keep_trailing_newline=True)
_environment.globals.update(
    format_duration=format_duration,
    severity_color=severity_color,
    severity_bg_color=severity_bg_color,
    stylesheet=_stylesheet(),
    script=_SCRIPT,
    summary_cards=_SUMMARY_CARDS,
)
_template = _environment.from_string(_TEMPLATE)


def render_html(result: ScanResult) -> str:
    """Render the scan result as a standalone HTML page."""
    generated = datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S %Z")
    return _template.render(result=result, generated=generated)


def write_html(result: ScanResult, output_path: str | os.PathLike[str]) -> None:
    """Write the HTML report to ``output_path``."""
    page = render_html(result)
    with open(output_path, "w", encoding="utf-8") as handle:
        handle.write(page)