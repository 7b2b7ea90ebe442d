#!/usr/bin/env python3
"""Compile email templates by inlining CSS and minifying HTML.

Source templates live in valida/templates/emails/*.j2; the compiled copies in
valida/templates/emails/compiled/ are what the app renders at runtime.

Run this script after modifying email templates:
    python scripts/compile_emails.py
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import css_inline  # noqa: E402
import minify_html  # noqa: E402
from jinja2 import Environment  # noqa: E402

from valida.core.constants import (  # noqa: E402
    CompiledEmailTemplatesDir,
    EmailTemplatesDir,
    JinjaEmailTemplatesEnv,
)

# Template configuration: maps template names to their Jinja2 variables
TEMPLATES = {
    "welcome.j2": ["name", "email", "initial_password", "login_url"],
}

# URL-safe marker that survives minification with its quotes intact
MARKER_URL_PREFIX = "https://jinja-placeholder.local/var/"


def restore_placeholders(html_content: str, variables: list[str]) -> str:
    """Swap the URL markers back to Jinja2 expressions.

    The minifier may drop attribute quotes, so unquoted markers are re-quoted.
    """
    for var in variables:
        marker = f"{MARKER_URL_PREFIX}{var}"
        jinja_var = f"{{{{ {var} }}}}"
        html_content = html_content.replace(f"={marker}>", f'="{jinja_var}">')
        html_content = html_content.replace(f"={marker} ", f'="{jinja_var}" ')
        html_content = html_content.replace(f'"{marker}"', f'"{jinja_var}"')
        html_content = html_content.replace(marker, jinja_var)
    return html_content


def compile_template(
    env: Environment,
    template_name: str,
    variables: list[str],
    output_dir: Path,
) -> Path:
    """Compile a single email template and return the written path."""
    context = {var: f"{MARKER_URL_PREFIX}{var}" for var in variables}
    html_content = env.get_template(template_name).render(**context)
    html_content = css_inline.inline(html_content)
    html_content = minify_html.minify(html_content, minify_css=True)
    html_content = restore_placeholders(html_content, variables)

    output_path = output_dir / (Path(template_name).stem + ".html")
    output_path.write_text(html_content, encoding="utf-8")
    print(f"  ok {template_name} -> {output_path.name}")
    return output_path


def main() -> None:
    """Compile all email templates."""
    CompiledEmailTemplatesDir.mkdir(exist_ok=True)

    print("Compiling email templates...")
    for template_name, variables in TEMPLATES.items():
        if not (EmailTemplatesDir / template_name).exists():
            print(f"  missing {template_name}")
            continue
        compile_template(
            JinjaEmailTemplatesEnv, template_name, variables, CompiledEmailTemplatesDir
        )

    print(f"\nCompiled templates saved to: {CompiledEmailTemplatesDir}")


if __name__ == "__main__":
    main()
