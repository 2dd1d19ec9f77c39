from datetime import datetime
import platform

def start_audit(source: str = "DLS conversion") -> list[str]:
    return [f"{source} start: {datetime.now().isoformat()}",
            f"Platform: {platform.platform()}" ]

def log_step(audit: list[str], msg: str):
    audit.append(f"{datetime.now().isoformat(timespec='seconds')} {msg}")
