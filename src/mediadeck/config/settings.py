import os

class Config:
    config_file = os.getenv("MEDIADECK_CONFIG_FILE", "")
    # Bypasses live drive probing so scans can run against a simulated filesystem
    test_mode = os.getenv("MEDIADECK_TEST_MODE", "false").lower() == "true"
    log_level = os.getenv("MEDIADECK_LOG_LEVEL", "INFO")
    refresh_interval = int(os.getenv("MEDIADECK_REFRESH_INTERVAL", "300"))

    # API server
    cors_origins = os.getenv("MEDIADECK_CORS_ORIGINS", "http://localhost:3000").split(",")

config = Config()
