import argparse
import logging
import os
import sys
from tqdm import tqdm

from depthstream.config import settings
from depthstream.errors import DepthStreamError
from depthstream.evaluation.metrics import MetricTracker
from depthstream.io.video_reader import VideoHandler, load_image, save_image
from depthstream.models.assets import list_models, resolve_model_path
from depthstream.models.backend import Backend
from depthstream.pipeline import DepthPipeline
from depthstream.processing.colorize import COLORMAPS
from depthstream.streaming import StreamSession

logger = logging.getLogger("depthstream")

IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.bmp', '.webp')


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Monocular depth estimation for images, videos and cameras")
    parser.add_argument('--input', type=str, help="Image, video file, or camera index (e.g. 0)")
    parser.add_argument('--model', type=str, default=settings.MODEL_NAME,
                        help="Model file name in --model_dir (defaults to the first one found)")
    parser.add_argument('--model_dir', type=str, default=settings.MODEL_DIR)
    parser.add_argument('--backend', type=str, default=settings.BACKEND, choices=[b.value for b in Backend])
    parser.add_argument('--colormap', type=str, default=settings.COLORMAP, choices=list(COLORMAPS))
    parser.add_argument('--output_dir', type=str, default=settings.OUTPUT_DIR)

    parser.add_argument('--save_frames', action='store_true', help="Save every depth frame as PNG")
    parser.add_argument('--max_frames', type=int, default=None, help="Stop a stream after this many frames")
    parser.add_argument('--realtime', action='store_true', help="Read video files at their native fps")

    parser.add_argument('--list_models', action='store_true', help="List models in --model_dir and exit")
    parser.add_argument('--log_level', type=str, default=settings.LOG_LEVEL)
    return parser.parse_args(argv)


def pick_model(args):
    name = args.model
    if not name:
        models = list_models(args.model_dir)
        if not models:
            raise DepthStreamError(f"No model found in {args.model_dir}")
        name = models[0]
    return resolve_model_path(args.model_dir, name)


def run_image(pipeline, args):
    image = load_image(args.input)
    result = pipeline.predict(image)

    name = os.path.splitext(os.path.basename(args.input))[0]
    out_path = os.path.join(args.output_dir, f"{name}_depth.png")
    save_image(out_path, result.depth_image)
    logger.info(f"Depth map saved: {out_path} | Inference: {result.latency_ms} ms")
    return result


def run_stream(pipeline, args):
    source = int(args.input) if args.input.isdigit() else args.input
    label = f"camera{source}" if isinstance(source, int) else os.path.splitext(os.path.basename(source))[0]
    filename = f"{label}_depth"

    video = VideoHandler(source, args.output_dir, filename)
    meta = video.get_info()
    logger.info(f"Source: {meta['width']}x{meta['height']} @ {meta['fps']:.1f}fps")

    frames_dir = None
    if args.save_frames:
        frames_dir = os.path.join(args.output_dir, filename, "depths")
        os.makedirs(frames_dir, exist_ok=True)

    metrics = MetricTracker()
    video.start_writer(meta['width'], meta['height'])
    pbar = tqdm(unit="frames", desc="Processed")

    def on_result(result):
        metrics.update(result)
        video.write(result.depth_image)
        if frames_dir:
            save_image(os.path.join(frames_dir, f"depth_{result.frame_index:05d}.png"), result.depth_image)
        pbar.set_postfix(ms=result.latency_ms)
        pbar.update(1)

    def on_error(index, error):
        logger.warning(f"Frame {index} failed: {error}")

    session = StreamSession(pipeline, video, on_result, on_error,
                            max_frames=args.max_frames, realtime=args.realtime)
    try:
        session.run()
    except KeyboardInterrupt:
        logger.warning("Stopping...")
        session.stop()
    finally:
        pbar.close()
        video.close()

    metrics.record_drop(session.gate.dropped)
    summary = metrics.get_summary()
    logger.info("-" * 40)
    logger.info(f"Latency: {summary['mean_latency_ms']:.1f} ms ({summary['fps']:.1f} fps)")
    logger.info(f"Frames processed: {summary['processed']} | dropped: {summary['dropped']}")
    logger.info(f"Frame-to-frame SSIM: {summary['avg_ssim']:.4f} | Flicker (PSD): {summary['high_freq_psd']:.5f}")
    logger.info("-" * 40)

    plot_path = metrics.plot_metrics(args.output_dir, filename)
    if plot_path:
        logger.info(f"Metrics plot saved: {plot_path}")
    return summary


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format='%(asctime)s - %(message)s', datefmt='%H:%M:%S')

    if args.list_models:
        for name in list_models(args.model_dir):
            print(name)
        return 0

    if not args.input:
        logger.error("--input is required")
        return 2

    try:
        with DepthPipeline(pick_model(args), backend=args.backend, colormap=args.colormap) as pipeline:
            if args.input.lower().endswith(IMAGE_EXTENSIONS):
                run_image(pipeline, args)
            else:
                run_stream(pipeline, args)
    except DepthStreamError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
