"""
load the agent config from config.yaml and environment variables
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any


class Config:
    """Configuration loader that reads from config.yaml and environment variables."""

    # keys whose env values are never coerced to numbers or booleans
    STRING_KEYS = frozenset({'user_agent', 'level', 'format'})
    
    def __init__(self, config_path: str = None):
        """Initialize configuration loader.
        
        Args:
            config_path: Path to config.yaml file. If None, looks for config.yaml 
                        in the same directory as this module.
        """
        if config_path is None:
            config_path = Path(__file__).parent / "config.yaml"
        
        self.config_path = Path(config_path)
        self._config = self._load_config()
    
    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file and override with environment variables."""
        try:
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        
        return self._apply_env_overrides(config)
    
    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration."""
        env_mappings = {
            'WEBAGENT_USER_AGENT': ('client', 'user_agent'),
            'WEBAGENT_TIMEOUT': ('client', 'timeout'),
            'WEBAGENT_FOLLOW_REDIRECTS': ('client', 'follow_redirects'),
            'WEBAGENT_MAX_REDIRECTS': ('client', 'max_redirects'),
            'WEBAGENT_VERIFY_TLS': ('client', 'verify_tls'),
            'WEBAGENT_CHUNK_SIZE': ('agent', 'chunk_size'),
            'LOG_LEVEL': ('logging', 'level'),
            'LOG_FORMAT': ('logging', 'format'),
            'SESSION_IDLE_MS': ('session', 'idle_ms'),
        }
        
        for env_var, config_path in env_mappings.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                current = config
                for key in config_path[:-1]:
                    if key not in current or current[key] is None:
                        current[key] = {}
                    current = current[key]
                
                final_key = config_path[-1]
                if final_key in self.STRING_KEYS:
                    current[final_key] = env_value
                else:
                    current[final_key] = self._convert_env_value(env_value)
        
        return config
    
    def _convert_env_value(self, value: str):
        """Convert environment variable string to appropriate Python type."""
        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'
        
        try:
            return int(value)
        except ValueError:
            pass
        
        try:
            return float(value)
        except ValueError:
            pass
        
        return value
    
    def get(self, *keys, default=None):
        """Get configuration value by walking nested keys.
        
        Args:
            *keys: Configuration keys (e.g., 'client', 'timeout')
            default: Default value if key not found
            
        Returns:
            Configuration value or default
        """
        current = self._config
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current
    
    @property
    def client(self) -> Dict[str, Any]:
        """Get HTTP client configuration."""
        return self.get('client', default={})
    
    @property
    def agent(self) -> Dict[str, Any]:
        """Get agent behavior configuration."""
        return self.get('agent', default={})
    
    @property
    def logging(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self.get('logging', default={})
    
    @property
    def session(self) -> Dict[str, Any]:
        """Get scripted session configuration."""
        return self.get('session', default={})


# Global configuration instance
config = Config()
