"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import numpy as np
import typer
from PIL import Image
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from palette_dither.animation import animate, save_gif
from palette_dither.config import DitherConfig
from palette_dither.dithering import Ditherer
from palette_dither.image_io import (
    load_image,
    make_comparison_grid,
    new_paletted,
    save_upscaled,
)
from palette_dither.kernels import KERNELS, get_kernel
from palette_dither.palette import NAMED_PALETTES, get_palette, parse_hex_palette

app = typer.Typer(
    name="palette-dither",
    help="Error-diffusion dithering onto a fixed colour palette.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
    )


def _collect_images(folder: Path, extensions: frozenset[str]) -> list[Path]:
    if not folder.exists():
        return []
    return sorted(
        f for f in folder.iterdir()
        if f.is_file() and f.suffix.lower() in extensions
    )


def _resolve_palette(name: str, colors: str | None) -> np.ndarray:
    try:
        if colors:
            return parse_hex_palette([c.strip() for c in colors.split(",") if c.strip()])
        return get_palette(name)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _check_kernel(name: str) -> None:
    try:
        get_kernel(name)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _mean_error(src: Image.Image, dithered: Image.Image) -> float:
    s = np.asarray(src.convert("RGB"), dtype=np.float64).reshape(-1, 3)
    d = np.asarray(dithered.convert("RGB"), dtype=np.float64).reshape(-1, 3)
    return float(np.mean(np.sqrt(np.sum((s - d) ** 2, axis=1))))


def _dither_file(
    img_path: Path,
    out_path: Path,
    palette: np.ndarray,
    cfg: DitherConfig,
) -> Image.Image:
    """Dither one file, writing the result (and the GIF when animating)."""
    logger = logging.getLogger("palette_dither")

    src = load_image(img_path, cfg.max_side)
    dst = new_paletted(src.size, palette)
    ditherer, receiver = Ditherer.from_config(cfg)

    if receiver is None:
        ditherer.draw(dst, None, src)
    else:
        frames = list(animate(ditherer, receiver, dst, src))
        gif_path = out_path.with_suffix(".gif")
        save_gif(frames, gif_path, cfg.gif_duration, cfg.pixel_upscale)
        logger.info("Collected %d frames", len(frames))

    save_upscaled(dst, out_path, cfg.pixel_upscale)

    if cfg.save_comparison:
        comp_path = out_path.with_name(f"{img_path.stem}_comparison.{cfg.output_format}")
        make_comparison_grid(src, dst, comp_path, cfg.pixel_upscale)
    return dst


# Defaults come from DitherConfig - single source of truth
_DEFAULTS = DitherConfig()


# -- kernels command ---------------------------------------------------

@app.command()
def kernels() -> None:
    """List the registered diffusion kernels and palettes."""
    table = Table(title="Diffusion kernels")
    table.add_column("Name", style="cyan")
    table.add_column("Size")
    table.add_column("Weight sum", justify="right")
    for name, kernel in KERNELS.items():
        table.add_row(name, f"{kernel.columns}x{kernel.rows}", f"{kernel.total:.4f}")
    console.print(table)
    console.print(f"Palettes: {', '.join(NAMED_PALETTES)}")


# -- batch command -----------------------------------------------------

@app.command()
def batch(
    input_dir: Path = typer.Option(
        _DEFAULTS.input_dir, "--input", "-i", help="Folder with source images",
    ),
    output_dir: Path = typer.Option(
        _DEFAULTS.output_dir, "--output", "-o", help="Results folder",
    ),
    kernel: str = typer.Option(
        _DEFAULTS.kernel, "--kernel", "-k", help="Diffusion kernel name",
    ),
    palette_name: str = typer.Option(
        _DEFAULTS.palette, "--palette", "-p", help="Named palette",
    ),
    colors: str | None = typer.Option(
        None, "--colors",
        help="Comma-separated hex colours, e.g. '#000000,#FFFFFF' (overrides --palette)",
    ),
    max_side: int | None = typer.Option(
        _DEFAULTS.max_side, "--max-side", "-m", help="Shrink longest side to this",
    ),
    frames: int = typer.Option(
        _DEFAULTS.frame_count, "--frames", "-f", min=1,
        help="Animation frames; > 1 also writes a GIF",
    ),
    upscale: int = typer.Option(
        _DEFAULTS.pixel_upscale, "--upscale", "-u", help="Pixel upscale factor",
    ),
    comparison: bool = typer.Option(
        _DEFAULTS.save_comparison, "--comparison/--no-comparison",
        help="Save a side-by-side comparison",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Dither all images in INPUT_DIR and write results to OUTPUT_DIR."""
    _setup_logging(verbose)
    _check_kernel(kernel)
    palette = _resolve_palette(palette_name, colors)

    cfg = DitherConfig(
        kernel=kernel,
        frame_count=frames,
        palette=palette_name,
        max_side=max_side,
        pixel_upscale=upscale,
        save_comparison=comparison,
        input_dir=input_dir,
        output_dir=output_dir,
    )

    input_dir.mkdir(exist_ok=True)
    output_dir.mkdir(exist_ok=True)

    images = _collect_images(input_dir, cfg.SUPPORTED_EXTENSIONS)
    if not images:
        console.print(f"\n[yellow]No images found in {input_dir}/[/yellow]")
        console.print("Place .jpg / .png / ... files there and re-run.\n")
        raise typer.Exit(0)

    console.print(Panel.fit(
        f"[bold]PALETTE DITHER[/bold]\n"
        f"Kernel: {cfg.kernel}  |  Palette: {len(palette)} colours\n"
        f"Frames: {cfg.frame_count}  |  Images: {len(images)}",
        border_style="cyan",
    ))

    for idx, img_path in enumerate(images, 1):
        console.rule(f"[bold cyan][{idx}/{len(images)}] {img_path.name}[/bold cyan]")
        t_total = time.perf_counter()

        out_path = output_dir / f"{img_path.stem}_dithered.{cfg.output_format}"
        dst = _dither_file(img_path, out_path, palette, cfg)

        err = _mean_error(load_image(img_path, cfg.max_side), dst)
        elapsed = time.perf_counter() - t_total
        console.print(
            f"  [green]✓[/green] {out_path.name}  "
            f"[dim]{dst.width}x{dst.height}  error={err:.1f}"
            f"  time={elapsed:.1f}s[/dim]"
        )

    console.print(Panel.fit(
        f"[bold green]ALL DONE[/bold green] - results in [bold]{output_dir}/[/bold]",
        border_style="green",
    ))


# -- single-image command ----------------------------------------------

@app.command()
def single(
    source: Path = typer.Argument(..., help="Path to the source image"),
    output: Path = typer.Option(Path("output/dithered.png"), "--output", "-o"),
    kernel: str = typer.Option(_DEFAULTS.kernel, "--kernel", "-k"),
    palette_name: str = typer.Option(_DEFAULTS.palette, "--palette", "-p"),
    colors: str | None = typer.Option(None, "--colors"),
    max_side: int | None = typer.Option(_DEFAULTS.max_side, "--max-side", "-m"),
    frames: int = typer.Option(_DEFAULTS.frame_count, "--frames", "-f", min=1),
    upscale: int = typer.Option(_DEFAULTS.pixel_upscale, "--upscale", "-u"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Dither a single image."""
    _setup_logging(verbose)
    _check_kernel(kernel)
    palette = _resolve_palette(palette_name, colors)

    if not source.exists():
        raise typer.BadParameter(f"{source} does not exist")

    cfg = DitherConfig(
        kernel=kernel,
        frame_count=frames,
        palette=palette_name,
        max_side=max_side,
        pixel_upscale=upscale,
    )

    output.parent.mkdir(parents=True, exist_ok=True)
    dst = _dither_file(source, output, palette, cfg)

    console.print(
        f"[green]✓[/green] Saved to {output}  "
        f"[dim]{dst.width}x{dst.height}  {len(palette)} colours[/dim]"
    )


if __name__ == "__main__":
    app()
