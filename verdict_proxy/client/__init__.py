from .wrapper import VerdictClient, encode_image_file, image_to_base64

__all__ = ["VerdictClient", "encode_image_file", "image_to_base64"]
