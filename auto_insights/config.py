# auto_insights/config.py
import os
from pathlib import Path
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field, asdict
import json
import logging

logger = logging.getLogger(__name__)

@dataclass
class PathConfig:
    """Configuration for project paths"""
    PROJECT_ROOT: Path
    LOGS_DIR: Path
    REPORTS_DIR: Path

@dataclass
class AnalysisThresholds:
    """Thresholds used by the profiler, detectors and insight rules"""
    MISSING_PCT_FLAG: float = 10
    OUTLIER_IQR_MULTIPLIER: float = 1.5
    OUTLIER_Z_THRESHOLD: float = 3.0
    CORRELATION_FLAG: float = 0.7
    CRAMERS_V_FLAG: float = 0.6
    ETA_SQUARED_FLAG: float = 0.25
    CHANGEPOINT_MIN_GAIN: float = 0.30
    ANOMALY_Z_THRESHOLD: float = 3.0
    SEASONALITY_STRENGTH: float = 0.30
    FLAT_SLOPE_EPSILON: float = 1e-8

@dataclass
class AnalysisLimits:
    """Sample-size minimums and top-K sizes"""
    TOP_CORRELATIONS: int = 5
    TOP_CATEGORICAL: int = 5
    FLAGGED_CORRELATIONS: int = 3
    FLAGGED_CATEGORICAL: int = 2
    MIN_PAIRED_POINTS: int = 3
    MIN_CONTINGENCY_OBSERVATIONS: int = 5
    MIN_TREND_POINTS: int = 3
    CHANGEPOINT_MARGIN: int = 3

@dataclass
class ChartConfig:
    """Configuration for chart suggestions and builders"""
    HIST_BINS: int = 12
    BAR_TOP_K: int = 10
    DONUT_TOP_K: int = 6
    HEATMAP_MAX_COLUMNS: int = 6
    MAX_CHARTS: int = 8

@dataclass
class IngestionConfig:
    """Configuration for loading tables"""
    MAX_FILE_SIZE_MB: int = 20
    SUPPORTED_FILE_FORMATS: List[str] = field(default_factory=lambda: ['.csv', '.json'])
    FETCH_TIMEOUT: int = 30

@dataclass
class NarrativeConfig:
    """Configuration for the external narrative generator"""
    PROVIDER: str = "groq"
    API_URL: str = "https://api.groq.com/openai/v1/chat/completions"
    MODEL: str = "llama-3.1-70b-versatile"
    API_KEY: Optional[str] = None
    TEMPERATURE: float = 0.2
    TIMEOUT: int = 60

# Sections that may be overridden from a config file
_SECTIONS = ['thresholds', 'limits', 'charts', 'ingestion', 'narrative']

class Config:
    """Central configuration manager for the insight pipeline"""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration

        Args:
            config_file: Optional path to JSON config file to override defaults
        """
        self._load_default_config()

        if config_file and os.path.exists(config_file):
            self._load_config_file(config_file)

        self._load_environment_variables()

    def _load_default_config(self):
        """Load default configuration values"""

        project_root = Path(__file__).parent.parent
        self.paths = PathConfig(
            PROJECT_ROOT=project_root,
            LOGS_DIR=project_root / "logs",
            REPORTS_DIR=project_root / "reports"
        )

        self.thresholds = AnalysisThresholds()
        self.limits = AnalysisLimits()
        self.charts = ChartConfig()
        self.ingestion = IngestionConfig()
        self.narrative = NarrativeConfig()

        # Additional settings
        self.logging_level = "INFO"
        self.debug_mode = False

    def _load_config_file(self, config_file: str):
        """Load configuration from JSON file"""
        try:
            with open(config_file, 'r') as f:
                config_data = json.load(f)

            # Update configurations with values from file
            for section, values in config_data.items():
                if section in _SECTIONS and isinstance(values, dict):
                    config_obj = getattr(self, section)
                    for key, value in values.items():
                        if hasattr(config_obj, key) and key != 'API_KEY':
                            setattr(config_obj, key, value)
                elif section == 'logging_level':
                    self.logging_level = values

        except (OSError, ValueError) as e:
            logger.warning(f"Could not load config file {config_file}: {e}")

    def _load_environment_variables(self):
        """Load configuration from environment variables"""

        # Narrative generator settings
        if os.getenv("AI_PROVIDER"):
            self.narrative.PROVIDER = os.getenv("AI_PROVIDER").lower()

        if os.getenv("GROQ_API_KEY"):
            self.narrative.API_KEY = os.getenv("GROQ_API_KEY")

        if os.getenv("GROQ_MODEL"):
            self.narrative.MODEL = os.getenv("GROQ_MODEL")

        if os.getenv("NARRATIVE_API_URL"):
            self.narrative.API_URL = os.getenv("NARRATIVE_API_URL")

        # Analysis settings
        if os.getenv("TOP_CORRELATIONS"):
            self.limits.TOP_CORRELATIONS = int(os.getenv("TOP_CORRELATIONS"))

        if os.getenv("HIST_BINS"):
            self.charts.HIST_BINS = int(os.getenv("HIST_BINS"))

        # Ingestion settings
        if os.getenv("MAX_FILE_SIZE_MB"):
            self.ingestion.MAX_FILE_SIZE_MB = int(os.getenv("MAX_FILE_SIZE_MB"))

        # General settings
        if os.getenv("LOG_LEVEL"):
            self.logging_level = os.getenv("LOG_LEVEL")

        if os.getenv("DEBUG_MODE"):
            self.debug_mode = os.getenv("DEBUG_MODE").lower() == 'true'

    def create_directories(self):
        """Create output directories if they don't exist"""
        for directory in [self.paths.LOGS_DIR, self.paths.REPORTS_DIR]:
            directory.mkdir(parents=True, exist_ok=True)

    def save_config(self, config_file: str):
        """Save current configuration to JSON file (secrets excluded)"""
        config_dict: Dict[str, Any] = {}

        for section in _SECTIONS:
            values = asdict(getattr(self, section))
            values.pop('API_KEY', None)
            config_dict[section] = values
        config_dict['logging_level'] = self.logging_level

        with open(config_file, 'w') as f:
            json.dump(config_dict, f, indent=2)

    def validate_config(self) -> List[str]:
        """Validate configuration and return list of issues"""
        issues = []

        proportions = {
            'CORRELATION_FLAG': self.thresholds.CORRELATION_FLAG,
            'CRAMERS_V_FLAG': self.thresholds.CRAMERS_V_FLAG,
            'ETA_SQUARED_FLAG': self.thresholds.ETA_SQUARED_FLAG,
            'CHANGEPOINT_MIN_GAIN': self.thresholds.CHANGEPOINT_MIN_GAIN,
        }
        for name, value in proportions.items():
            if value < 0 or value > 1:
                issues.append(f"Invalid {name}: {value} (expected 0..1)")

        if self.thresholds.MISSING_PCT_FLAG < 0 or self.thresholds.MISSING_PCT_FLAG > 100:
            issues.append(f"Invalid missing percentage flag: {self.thresholds.MISSING_PCT_FLAG}")

        if self.thresholds.OUTLIER_Z_THRESHOLD <= 0 or self.thresholds.ANOMALY_Z_THRESHOLD <= 0:
            issues.append("Z-score thresholds must be positive")

        for name, value in asdict(self.limits).items():
            if value <= 0:
                issues.append(f"{name} must be > 0: {value}")

        if self.limits.MIN_PAIRED_POINTS < 2:
            issues.append(f"MIN_PAIRED_POINTS must be >= 2: {self.limits.MIN_PAIRED_POINTS}")

        if self.charts.HIST_BINS <= 0:
            issues.append(f"Invalid histogram bins: {self.charts.HIST_BINS}")

        if self.ingestion.MAX_FILE_SIZE_MB <= 0:
            issues.append(f"Invalid max file size: {self.ingestion.MAX_FILE_SIZE_MB}")

        return issues

    def __str__(self) -> str:
        """String representation of configuration"""
        return f"Config(project_root={self.paths.PROJECT_ROOT}, debug={self.debug_mode})"

# Global configuration instance
_config = None

def get_config(config_file: Optional[str] = None) -> Config:
    """Get global configuration instance (singleton pattern)"""
    global _config
    if _config is None:
        _config = Config(config_file)
    return _config

def reload_config(config_file: Optional[str] = None) -> Config:
    """Reload configuration (useful for testing)"""
    global _config
    _config = Config(config_file)
    return _config

# Example configuration file template
CONFIG_TEMPLATE = {
    "thresholds": {
        "MISSING_PCT_FLAG": 10,
        "CORRELATION_FLAG": 0.7,
        "CHANGEPOINT_MIN_GAIN": 0.3
    },
    "limits": {
        "TOP_CORRELATIONS": 5,
        "MIN_PAIRED_POINTS": 3
    },
    "charts": {
        "HIST_BINS": 12
    },
    "narrative": {
        "PROVIDER": "groq",
        "MODEL": "llama-3.1-70b-versatile"
    }
}

def create_config_template(output_file: str):
    """Create a configuration template file"""
    with open(output_file, 'w') as f:
        json.dump(CONFIG_TEMPLATE, f, indent=2)
