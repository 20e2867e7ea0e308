"""
Verdict CLI

Judges one image, or every image in a directory, through the proxy and
writes the verdicts to a CSV file next to the input.

Usage:
    python verdict_cli.py <image_or_dir> [--category brief] [--proxy-url URL]
"""

import argparse
import asyncio
import time
from datetime import datetime
from pathlib import Path

from verdict_proxy.client import VerdictClient
from verdict_proxy.config.prompts import prompt_registry
from verdict_proxy.core.types import Verdict

try:
    import pandas as pd
except ModuleNotFoundError as e:
    if e.name == "pandas":
        raise ImportError(
            "'pandas' library is required to run this script."
        ) from e
    else:
        raise

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif", ".bmp"}


def find_images(path: Path) -> list[Path]:
    """Single file, or every image directly inside a directory."""
    if path.is_file():
        return [path]
    return sorted(p for p in path.iterdir() if p.suffix.lower() in IMAGE_EXTENSIONS)


async def judge_images(client: VerdictClient, images: list[Path], category: str, concurrency: int) -> list[dict]:
    """Submit images with up to `concurrency` requests outstanding; the proxy serializes them."""
    semaphore = asyncio.Semaphore(concurrency)

    async def judge(image_path: Path) -> dict:
        async with semaphore:
            start = time.time()
            error = None
            try:
                verdict = await client.analyze_file(image_path, category)
            except OSError as e:
                error = f"{type(e).__name__}: {e}"
                verdict = Verdict.failure(f"Could not read image ({error})")
            elapsed = time.time() - start
            print(f"{image_path.name}: {verdict.verdict} ({verdict.rating}/10) in {elapsed:.1f}s")
            return {
                "image": str(image_path),
                "category": category,
                **verdict.to_dict(),
                "error": error,
                "elapsed_seconds": elapsed,
                "timestamp": datetime.now().isoformat(),
            }

    return await asyncio.gather(*(judge(p) for p in images))


async def run(args: argparse.Namespace) -> None:
    target = Path(args.path)
    images = find_images(target)
    if not images:
        print(f"No images found in {target}")
        return

    print(f"Judging {len(images)} image(s) with category '{args.category}'")

    async with VerdictClient(
        proxy_url=args.proxy_url, model=args.model, timeout_ms=args.timeout_ms
    ) as client:
        start = time.time()
        results = await judge_images(client, images, args.category, args.concurrency)
        total_time = time.time() - start

    df = pd.DataFrame(results)
    base_dir = target if target.is_dir() else target.parent
    output_path = Path(args.output) if args.output else base_dir / f"verdicts_{args.category}.csv"
    df.to_csv(output_path, index=False)
    print(f"Results saved to: {output_path}")

    passed = (df["verdict"] == "PASS").sum()
    print(f"PASS {passed}/{len(df)}, mean rating {df['rating'].mean():.2f}, total {total_time:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Judge images through the verdict proxy")
    parser.add_argument("path", help="Image file or directory of images")
    parser.add_argument("--category", default="brief", choices=prompt_registry.list_categories())
    parser.add_argument("--proxy-url", default=None, help="Proxy generate URL")
    parser.add_argument("--model", default=None, help="Backend model identifier")
    parser.add_argument("--timeout-ms", type=int, default=None, help="End-to-end timeout per image")
    parser.add_argument("--concurrency", type=int, default=4, help="Requests submitted at once")
    parser.add_argument("--output", default=None, help="CSV output path")

    args = parser.parse_args()
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
