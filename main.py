#!/usr/bin/env python3
"""
AssetGate -- password-gated, time-limited access to documents and page renders.

Usage:
  python main.py serve
  python main.py serve --port 8080 --reload
  python main.py manifest report.pdf

Environment variables (see core/config.py for the full list):
  ACCESS_PASSWORD   The shared password clients log in with (PDF_PASSWORD also accepted).
  JWT_SECRET        Token signing key, at least 32 characters. Optional with DEBUG=true.
  PRIMARY_DIR       Directory holding the documents (default: pdfs).
  DERIVATIVE_DIR    Directory holding per-page renders (default: pngs).
"""

import argparse
import sys

from core.config import get_settings


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    host = args.host or settings.host
    port = args.port or settings.port
    print(f"AssetGate running on {host}:{port} (debug={settings.debug})")
    uvicorn.run("asgi:app", host=host, port=port, reload=args.reload, proxy_headers=True)
    return 0


def _manifest(args: argparse.Namespace) -> int:
    """Print the derivative manifest the login endpoint would attach for a name.

    Handy after uploading page renders: an empty result usually means the
    files do not follow the <base>-<page>.<ext> naming convention.
    """
    from core.models import Namespace
    from storage.resolver import AssetResolver, is_valid_name
    from storage.store import LocalAssetStore

    settings = get_settings()
    if not is_valid_name(args.name, settings.primary_ext):
        print(f"  [!] '{args.name}' is not a valid .{settings.primary_ext} name.")
        return 2
    store = LocalAssetStore({Namespace.primary: settings.primary_dir, Namespace.derivative: settings.derivative_dir})
    names = AssetResolver(store).list_derivatives(args.name, settings.derivative_ext)
    if not names:
        print(f"  No .{settings.derivative_ext} renders found for {args.name} in {settings.derivative_dir}")
        return 1
    for name in names:
        print(name)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="assetgate",
        description="Password-gated, time-limited access to documents and their page renders.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST or 0.0.0.0)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: PORT or 3000)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    serve.set_defaults(func=_serve)

    manifest = sub.add_parser("manifest", help="List the page renders for a document")
    manifest.add_argument("name", help="Document name, e.g. report.pdf")
    manifest.set_defaults(func=_manifest)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
