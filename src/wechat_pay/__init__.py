"""WeChat Pay gateway integration: signing, notification verification, API client."""
