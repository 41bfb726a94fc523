#!/usr/bin/env python3
"""
Rule Loader - Load YAML parsing rules from the rules directory
Merges the Costco rule file over built-in defaults
"""

import os
import copy
import yaml
import logging
import hashlib
from pathlib import Path
from typing import Dict, Any, Optional

from .config import RULES_DIR, RULES_FILE, HOT_RELOAD_ENV_VAR

logger = logging.getLogger(__name__)


DEFAULT_RULES: Dict[str, Any] = {
    'header': {
        'line_count': 3,
    },
    'markers': {
        'member': 'Member',
        'subtotal': 'SUBTOTAL',
        'tax': 'TAX',
        'total': '****TOTAL',
        'items_sold': 'TOTAL NUMBER OF ITEMS SOLD =',
    },
    'tax_exempt_codes': ['E', 'F'],
    'card': {
        'mask_characters': 'X*',
        'min_mask_length': 8,
    },
    'spacing_fixes': [],
}


def default_rules() -> Dict[str, Any]:
    """Return a private copy of the built-in rules"""
    return copy.deepcopy(DEFAULT_RULES)


class RuleLoader:
    """Load and parse YAML rules, merging the rule file over DEFAULT_RULES"""
    
    def __init__(self, rules_dir: Optional[Path] = None, enable_hot_reload: Optional[bool] = None):
        """
        Initialize rule loader with rules directory
        
        Args:
            rules_dir: Directory holding costco.yaml (defaults to the packaged rules)
            enable_hot_reload: Enable checksum-based hot-reload. When None, the
                              COSTCO_RULES_HOT_RELOAD environment variable decides (default: off)
        """
        if enable_hot_reload is None:
            enable_hot_reload = os.environ.get(HOT_RELOAD_ENV_VAR, '0') == '1'
        
        self.rules_dir = Path(rules_dir) if rules_dir else RULES_DIR
        self._rules_cache: Dict[str, Dict[str, Any]] = {}
        self._file_checksums = {} if enable_hot_reload else None  # Only track when enabled
        self._enable_hot_reload = enable_hot_reload
        self._file_read_count = 0
    
    def _calculate_file_checksum(self, file_path: Path) -> str:
        """Calculate MD5 checksum for a file"""
        try:
            with open(file_path, 'rb') as f:
                return hashlib.md5(f.read()).hexdigest()
        except OSError as e:
            logger.warning(f"Error calculating checksum for {file_path}: {e}")
            return ''
    
    def _should_reload_file(self, filename: str, rule_file: Path) -> bool:
        """Check if a rule file should be reloaded based on checksum"""
        # Fast path: when hot-reload is disabled, only check cache
        if not self._enable_hot_reload:
            return filename not in self._rules_cache
        
        if not rule_file.exists():
            return filename not in self._rules_cache
        
        current_checksum = self._calculate_file_checksum(rule_file)
        cached_checksum = self._file_checksums.get(filename)
        
        if current_checksum != cached_checksum:
            if cached_checksum:
                logger.debug(f"Rule file {filename} modified, reloading...")
            return True
        
        return False
    
    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load a YAML file directly"""
        self._file_read_count += 1
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading YAML file {file_path}: {e}")
            return {}
        
        if not isinstance(data, dict):
            logger.error(f"Rule file {file_path} must contain a mapping, got {type(data).__name__}")
            return {}
        return data
    
    def _merge_rules(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two dictionaries
        override takes precedence over base
        """
        result = base.copy()
        
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_rules(result[key], value)
            else:
                result[key] = value
        
        return result
    
    def get_parser_rules(self, filename: str = RULES_FILE) -> Dict[str, Any]:
        """
        Load parsing rules for the receipt aggregator
        
        Args:
            filename: Rule file name inside rules_dir
            
        Returns:
            Rules dictionary (defaults merged with the file contents)
        """
        rule_file = self.rules_dir / filename
        
        if self._should_reload_file(filename, rule_file):
            if rule_file.exists():
                file_rules = self._load_yaml_file(rule_file)
                if self._enable_hot_reload:
                    self._file_checksums[filename] = self._calculate_file_checksum(rule_file)
                logger.debug(f"Loaded {filename}")
            else:
                file_rules = {}
                logger.warning(f"{filename} not found in {self.rules_dir}, using default rules")
            self._rules_cache[filename] = self._merge_rules(default_rules(), file_rules)
        
        return self._rules_cache[filename]
    
    def get_file_read_count(self) -> int:
        """Number of rule files read from disk so far"""
        return self._file_read_count
