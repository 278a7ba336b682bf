from .loader import Config, dump_config, load_config

__all__ = ["Config", "load_config", "dump_config"]
