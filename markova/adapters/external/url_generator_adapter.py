from markova.core.ports.outbound import URLGeneratorPort

class URLGeneratorAdapter(URLGeneratorPort):
    """Adapter for generating URLs"""

    def __init__(self, scheme: str = "http"):
        self.scheme = scheme

    def generate_video_url(self, filename: str, host: str) -> str:
        """Generate external video URL"""
        return f"{self.scheme}://{host}/download-video/{filename}"
