"""
Centralized configuration for the Merchant Residuals Audit engine.
All MID rules, audit tolerances, priorities and storage settings are defined here.
"""
from dataclasses import dataclass, field
from typing import Dict
from pathlib import Path
import os


@dataclass
class MidConfig:
    """Length bounds for a normalized (digits-only) merchant identifier."""
    min_length: int = 8
    max_length: int = 20


@dataclass
class AuditRuleConfig:
    """Configuration for audit checks and the issues they raise."""
    split_target: float = 100.0
    split_tolerance: float = 0.01
    default_status: str = "open"
    priority_by_issue: Dict[str, str] = field(default_factory=lambda: {
        "missing_assignment": "medium",
        "split_error": "high",
        "unmatched_mid": "low"
    })

    def get_priority(self, issue_type: str) -> str:
        return self.priority_by_issue.get(issue_type, "medium")


@dataclass
class StorageConfig:
    """Configuration for data persistence."""
    backend: str = field(default_factory=lambda: os.getenv('RESIDUALS_STORAGE', 'filesystem').lower())
    base_dir: Path = field(default_factory=lambda: Path(os.getenv('RESIDUALS_DATA_DIR', 'instance/data')))

    def is_filesystem(self) -> bool:
        return self.backend == 'filesystem'


@dataclass
class UploadConfig:
    """Configuration for the upload endpoint."""
    max_content_length: int = field(default_factory=lambda: int(os.getenv('MAX_UPLOAD_MB', '50')) * 1024 * 1024)
    encoding: str = "utf-8"
    upload_types: tuple = ("processor", "lead_sheet")


@dataclass
class AppConfig:
    """Main configuration container."""
    mid: MidConfig = field(default_factory=MidConfig)

    # Audit check settings
    audit: AuditRuleConfig = field(default_factory=AuditRuleConfig)

    # Storage settings
    storage: StorageConfig = field(default_factory=StorageConfig)

    upload: UploadConfig = field(default_factory=UploadConfig)


# Global configuration instance
config = AppConfig()
