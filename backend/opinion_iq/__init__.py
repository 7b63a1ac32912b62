"""Opinion IQ: trade / wait / avoid verdicts for opinion.trade markets"""

__version__ = "1.0.0"
