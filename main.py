# main.py

import pygame
import constants
import logging
import logger_setup
import numpy as np
from noise_source import PerlinNoise
from sim_config import load_config
from simulation import Simulation

# Get the application's dedicated logger
logger = logging.getLogger("flow_field_sim")


def to_screen(point):
    """Maps world coordinates (origin at the center) to pygame pixel coordinates."""
    return (int(point[0] + constants.WIDTH / 2), int(point[1] + constants.HEIGHT / 2))


def draw_frame(screen: pygame.Surface, simulation: Simulation):
    """
    Draws one frame of render data, then commits the trail anchors.
    The engine only hands out line segments; all drawing happens here.
    """
    screen.fill(constants.BACKGROUND_COLOR)

    for start, end, color in simulation.field_glyphs():
        pygame.draw.line(screen, color, to_screen(start), to_screen(end), constants.FIELD_LINE_WIDTH)

    # Trails are translucent, so they go through an alpha surface.
    trail_surface = pygame.Surface(screen.get_size(), pygame.SRCALPHA)
    for start, end, color in simulation.trail_segments():
        pygame.draw.line(trail_surface, color, to_screen(start), to_screen(end), constants.TRAIL_LINE_WIDTH)
    screen.blit(trail_surface, (0, 0))

    simulation.commit_trail_anchors()


def run_simulation_loop(simulation: Simulation, screen: pygame.Surface, clock: pygame.time.Clock, max_ticks=None):
    """
    The host loop: one advance() and one drawn frame per tick.
    Runs until the window is closed, Escape is pressed, or max_ticks is reached.
    Returns the number of ticks run.
    """
    running = True
    tick = 0
    clamped_since_log = 0

    while running and (max_ticks is None or tick < max_ticks):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                running = False

        # --- Simulation Update ---
        clamped_since_log += simulation.advance()

        # --- Logging (throttled) ---
        if tick % constants.LOG_EVERY_N_TICKS == 0:
            logger.debug(
                f"Tick={tick}, "
                f"MeanSpeed={simulation.particles.mean_speed():.3f}, "
                f"NoiseZ={simulation.field.noise_cursor[2]:.3f}, "
                f"ClampedLookups={clamped_since_log}, "
                f"TotalClampedLookups={simulation.field.out_of_range_lookups}"
            )
            clamped_since_log = 0

        # --- Drawing ---
        draw_frame(screen, simulation)
        pygame.display.flip()
        clock.tick(constants.FPS)
        tick += 1

    return tick


def main(config_path='config.json'):
    """
    Main function to initialize and run the flow field simulation.
    """
    # --- Setup ---
    logger_setup.setup_logging(config_path)
    config, sim_config = load_config(config_path)

    logger.info("Application starting...")

    # Initialize the master random number generator (RNG)
    rng = np.random.default_rng(config['master_seed'])
    logger.info(f"Master RNG initialized with seed: {config['master_seed']}")

    noise = PerlinNoise(base=sim_config.noise_seed)
    simulation = Simulation(sim_config, noise, rng)

    # --- Initialization ---
    pygame.init()
    screen = pygame.display.set_mode((constants.WIDTH, constants.HEIGHT))
    pygame.display.set_caption(constants.TITLE)
    clock = pygame.time.Clock()

    ticks = run_simulation_loop(simulation, screen, clock)

    logger.info(f"Application shutting down after {ticks} ticks.")
    pygame.quit()

if __name__ == "__main__":
    main()
