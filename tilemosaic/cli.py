import click
import time
import traceback

from .config import MosaicConfig, DitherMode
from .errors import ProcessingError
from .frame_pipeline import FramePipeline
from .tiles import load_tiles
from .video_scheduler import MosaicTaskScheduler
from .chainable import LogManager


DITHER_PROMPT = (
    "Choose dithering mode:\n"
    "0: No dithering\n"
    "1: Ordered dithering\n"
    "2: Error-diffusion dithering\n"
    "Enter choice"
)


def _echo_progress(current: int, total: int, elapsed: float):
    total_text = total if total > 0 else '?'
    click.echo(f"\rProgress: Frame {current} / {total_text}", nl=False)


@click.command()
@click.argument('video_file', type=click.Path(exists=True, dir_okay=False))
@click.argument('block_size', type=click.IntRange(min=1))
@click.argument('threshold', type=click.IntRange(0, 255))
@click.argument('black_tile', type=click.Path(exists=True, dir_okay=False))
@click.argument('white_tile', type=click.Path(exists=True, dir_okay=False))
@click.argument('output_video', type=click.Path(dir_okay=False))
@click.option('--dither', '-d', type=int, default=None,
              help='Dithering mode: 0 none, 1 ordered, 2 error-diffusion. Prompted for when omitted.')
@click.option('--workers', '-w', type=click.IntRange(min=1), default=4, help='Number of worker threads/processes. Default is 4.')
@click.option('-e', '--execution-mode', type=click.Choice(['threading', 'multiprocessing']), default='threading',
              help='Execution mode for parallel processing. Default is threading.')
@click.option('-b', '--batch-size', type=click.IntRange(min=1), default=50, help='Frames decoded per batch. Default is 50.')
@click.option('--max-frames', type=click.IntRange(min=1), default=None, help='Stop after this many frames.')
@click.option('--codec', default='libx264', show_default=True, help='Output video codec.')
@click.option('--log-dir', type=click.Path(file_okay=False), default='logs', show_default=True,
              help='Directory for the per-run log file.')
def main(video_file, block_size, threshold, black_tile, white_tile, output_video,
         dither, workers, execution_mode, batch_size, max_frames, codec, log_dir):
    """Render VIDEO_FILE as a mosaic of BLACK_TILE / WHITE_TILE blocks into OUTPUT_VIDEO."""
    if dither is None:
        dither = click.prompt(DITHER_PROMPT, type=int, default=int(DitherMode.NONE))

    if not DitherMode.is_known(dither):
        click.echo(f'Warning: unknown dithering mode {dither}, continuing without dithering.')

    LogManager.initialize(log_dir)

    try:
        config = MosaicConfig(block_size=block_size, threshold=threshold, dither_mode=dither)
        tiles = load_tiles(black_tile, white_tile, block_size)

        scheduler = MosaicTaskScheduler(
            pipeline=FramePipeline(config, tiles),
            max_workers=workers,
            execution_mode=execution_mode,
            batch_size=batch_size,
            codec=codec
        )

        click.echo(f'Opening video file: {video_file}')
        LogManager.log_info('CLI', f'Run config: {config}, workers={workers}, mode={execution_mode}')

        start_time = time.perf_counter()
        frames_written, metadata = scheduler.process_video_file(
            video_file,
            output_video,
            progress_callback=_echo_progress,
            max_frames=max_frames
        )
        elapsed = time.perf_counter() - start_time
        click.echo()

    except Exception as e:
        click.echo()
        LogManager.log_error('CLI', f'Critical processing error: {str(e)}', e)
        click.echo(f'Error: {str(e)}', err=True)
        if not isinstance(e, ProcessingError):
            click.echo(f'Traceback:\n{traceback.format_exc()}', err=True)
        click.echo(f'Log available at: {LogManager.get_log_file_path()}', err=True)
        LogManager.cleanup()
        raise click.Abort()

    click.echo(f'Processing completed in {elapsed:.3f} seconds.')
    if frames_written and elapsed > 0:
        click.echo(f'Average Time per Frame: {elapsed / frames_written:.4f} seconds. '
                   f'({frames_written / elapsed:.2f} fps)')
    click.echo(f'Output: {output_video} ({frames_written} frames, {metadata.width}x{metadata.height})')

    LogManager.log_info('CLI', f'Processing completed successfully: {frames_written} frames in {elapsed:.3f}s')
    LogManager.cleanup()


if __name__ == '__main__':
    main()
