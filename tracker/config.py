"""Reading tracker configuration.

Re-exports the ReadingTrackerConfig from the patterns module, loaded once
from the environment.
"""

from patterns.domain_config import ReadingTrackerConfig

config = ReadingTrackerConfig.from_env()
