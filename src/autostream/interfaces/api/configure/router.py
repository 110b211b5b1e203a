"""Configure page: collects debrid settings and hands out an install link."""

from __future__ import annotations

import html
from urllib.parse import quote

import structlog
from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse

from autostream.infrastructure.stremio.user_token import (
    build_torrentio_url,
    encode_user_config,
)

log = structlog.get_logger(__name__)

router = APIRouter(tags=["configure"])

PROVIDERS = ("AllDebrid", "RealDebrid", "Premiumize")

_BASE_STYLE = """
  :root{color-scheme:dark}
  body{margin:0;background:#0d0e16;color:#e8e8f4;font:16px/1.45 system-ui,Segoe UI,Roboto,Helvetica,Arial}
  .wrap{max-width:860px;margin:48px auto;padding:0 20px}
  .card{background:#121427;border:1px solid #1c1f3a;border-radius:14px;padding:22px}
  .btn{display:inline-block;padding:12px 16px;border-radius:10px;border:1px solid #2b2f55;background:#191c36;color:#fff;text-decoration:none}
  .btn:hover{background:#1f2345}
"""

_FORM_STYLE = """
  h1{font-size:28px;margin:0 0 20px}
  .row{display:flex;gap:14px;align-items:center;margin:12px 0}
  label{min-width:220px;opacity:.9}
  select,input[type=text]{flex:1;padding:.7rem .8rem;border-radius:10px;border:1px solid #2b2f55;background:#171a31;color:#eef}
  .check{display:flex;align-items:center;gap:12px}
  input[type=checkbox]{width:18px;height:18px}
  button.btn{display:block;width:100%;margin-top:16px}
  .err{background:#2a1320;border:1px solid #7d2a3c;color:#ffd3da;padding:10px;border-radius:10px;margin-bottom:12px}
"""

_INSTALL_STYLE = """
  code{display:block;word-break:break-all;background:#171a31;border:1px solid #2b2f55;border-radius:8px;padding:10px;margin:12px 0}
"""


def _page(title: str, style: str, body: str) -> str:
    return (
        "<!doctype html>\n"
        '<meta name="viewport" content="width=device-width,initial-scale=1" />\n'
        f"<title>{html.escape(title)}</title>\n"
        f"<style>{_BASE_STYLE}{style}</style>\n"
        f'<div class="wrap">\n{body}\n</div>\n'
    )


def render_form(error: str | None = None) -> str:
    """Configure form; ``error`` is shown above the fields when set."""
    options = "\n".join(
        f"          <option>{html.escape(p)}</option>" for p in PROVIDERS
    )
    err = f'<div class="err">{html.escape(error)}</div>' if error else ""
    body = f"""  <h1>AutoStream — Configure</h1>
  <div class="card">{err}
    <form method="POST" action="/configure">
      <div class="row">
        <label>Debrid provider</label>
        <select name="provider">
{options}
        </select>
      </div>
      <div class="row check">
        <input id="cached" type="checkbox" name="cached" checked />
        <label for="cached">Prefer cached links (Debrid)</label>
      </div>
      <div class="row">
        <label>Debrid API key <b>(required)</b></label>
        <input type="text" name="apikey" placeholder="Paste your provider’s API key" required />
      </div>
      <button class="btn" type="submit">Install in Stremio</button>
    </form>
  </div>"""
    return _page("AutoStream — Configure", _FORM_STYLE, body)


def render_install(manifest_url: str) -> str:
    """Install page with the ``stremio://`` deep link and the plain URL."""
    deep_link = f"stremio://addon-install?url={quote(manifest_url, safe='')}"
    body = f"""  <div class="card">
    <h2>Install in Stremio</h2>
    <p><a class="btn" href="{html.escape(deep_link)}">Open Stremio &amp; Install</a></p>
    <p><small>If that doesn’t open Stremio automatically, copy this manifest URL and use
    <b>Add-ons → Install via URL</b>:</small></p>
    <code>{html.escape(manifest_url)}</code>
    <p><a class="btn" href="/configure">Back</a></p>
  </div>"""
    return _page("AutoStream — Install", _INSTALL_STYLE, body)


def base_origin(request: Request) -> str:
    """Public origin of this server, honoring ``X-Forwarded-Proto``."""
    forwarded = request.headers.get("x-forwarded-proto", "")
    proto = forwarded.split(",")[0].strip() or request.url.scheme or "https"
    host = request.headers.get("host") or request.url.netloc
    return f"{proto}://{host}"


@router.get("/", response_class=HTMLResponse)
@router.get("/configure", response_class=HTMLResponse)
async def configure_form() -> HTMLResponse:
    return HTMLResponse(render_form())


@router.post("/configure", response_class=HTMLResponse)
async def configure_submit(
    request: Request,
    provider: str = Form("AllDebrid"),
    cached: str | None = Form(None),
    apikey: str = Form(""),
) -> HTMLResponse:
    """Build the per-user token and show the install links.

    A missing API key re-renders the form with an error.
    """
    api_key = apikey.strip()
    if not api_key:
        log.info("configure_missing_api_key", provider=provider)
        return HTMLResponse(
            render_form("API key is required for the selected debrid provider.")
        )

    source = build_torrentio_url(
        provider=provider, cached=cached is not None, api_key=api_key
    )
    token = encode_user_config({"torrentio": source})
    manifest_url = f"{base_origin(request)}/u/{token}/manifest.json"

    log.info("configure_token_issued", provider=provider, cached=cached is not None)
    return HTMLResponse(render_install(manifest_url))
