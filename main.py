# main.py
"""
Main entry point for the particle link field.

This script orchestrates the whole lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Opens the window and starts the engine.
4. Runs the frame loop until the window closes or max_steps is reached.
5. Handles clean shutdown.
"""
import logging
import sys
from utils import setup_logging, load_config
import cProfile
import pstats
import io


def main(config_path: str = 'config.json'):
    """
    The main function to run the particle field.
    """
    # Load configuration from the JSON file first.
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config(config_path)
    except Exception as e:
        print(f"FATAL: Could not load {config_path}. Error: {e}")
        return

    # Set up the logging system based on the loaded configuration.
    setup_logging(config)

    logging.info("--- Particle Field Starting ---")

    particle_settings = config.get('particle_settings', {})
    sim_params = config.get('simulation', {})
    run_params = config.get('run_control', {})
    vis_params = config.get('visualization', {})

    from constants import FPS, FULLSCREEN, WINDOW_HEIGHT, WINDOW_WIDTH
    from engine import Engine
    from visualization import FrameScheduler, Visualizer

    # --- Component Initialization ---
    # 1. The visualizer opens the window; it is both the surface and the sink.
    visualizer = Visualizer(
        width=vis_params.get('width', WINDOW_WIDTH),
        height=vis_params.get('height', WINDOW_HEIGHT),
        fullscreen=vis_params.get('fullscreen', FULLSCREEN),
    )
    scheduler = FrameScheduler(vis_params.get('fps', FPS))

    # 2. The engine resolves its settings from the window size on start.
    log_throttle = run_params.get('log_throttle_steps', 100)
    engine = Engine(
        surface=visualizer,
        sink=visualizer,
        scheduler=scheduler,
        settings=particle_settings,
        seed=sim_params.get('seed'),
        log_throttle=log_throttle,
    )

    profiler = cProfile.Profile() if run_params.get('profile', False) else None

    # 0 means run until the window is closed.
    max_steps = run_params.get('max_steps', 0)

    engine.start()

    if profiler:
        profiler.enable()
    while scheduler.pending:
        if not visualizer.handle_events(engine):
            engine.stop()

        # Check for max_steps exit condition
        if max_steps and engine.tick_count >= max_steps:
            logging.info(f"Reached max_steps ({max_steps}). Stopping engine.")
            engine.stop()

        scheduler.run_pending()
        if engine.is_running:
            visualizer.present()
    if profiler:
        profiler.disable()

    visualizer.close()
    logging.info("Frame loop finished.")

    if profiler:
        # --- Performance Profile Output ---
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20) # Print top 20 slowest functions
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Particle Field Shutting Down ---")


if __name__ == "__main__":
    main(*sys.argv[1:2])
