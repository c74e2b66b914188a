"""resource-spine command line interface (``resource-spine``)."""
