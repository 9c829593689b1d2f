from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Allow running this script from repo root (or anywhere) without installing the package.
_API_ROOT = Path(__file__).resolve().parents[1]  # .../apps/api
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

from herd_lens_api.failures import UpstreamError
from herd_lens_api.gemini import GeminiClient, ModelBackend
from herd_lens_api.secrets import load_secrets, secrets_status


async def _run(client: ModelBackend, limit: int, contains: str | None = None) -> int:
    models = await client.list_models()
    if contains:
        needle = contains.lower()
        models = [m for m in models if needle in m.lower()]
    print(f"[models] found={len(models)} (showing up to {limit})")
    for m in models[:limit]:
        print(m)
    return 0


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(
        description="List the models the configured key can use (for IMAGE_MODEL / TEXT_MODEL)."
    )
    ap.add_argument("--limit", type=int, default=200)
    ap.add_argument("--contains", default=None, help="only show ids containing this text")
    args = ap.parse_args(argv)

    s = load_secrets()
    print("[models] config:", secrets_status(s))
    if not s.api_key:
        print("[models] No API key found (set API_KEY, GEMINI_API_KEY or GOOGLE_API_KEY)")
        return 1

    client = GeminiClient(api_key=s.api_key, base_url=s.resolved_base_url)
    try:
        return asyncio.run(_run(client, args.limit, args.contains))
    except UpstreamError as e:
        print(f"[models] UpstreamError: {e}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
