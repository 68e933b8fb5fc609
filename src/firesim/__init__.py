"""firesim - Bushfire training scenario image generator.

firesim turns a fire perimeter, weather inputs and fire characteristics into
photorealistic training images for fire service exercises. A scenario flows
through a fixed pipeline:

- Parse: validate the request and locate the fire perimeter
- Enrich: add locality context (optionally grounded by an LLM)
- Compile: render viewpoint prompts from structured scenario data
- Generate: call an image model for an anchor view, then derived views
- Store: persist images, metadata and a generation log per scenario
"""

__version__ = "0.1.0"
__author__ = "firesim Contributors"
