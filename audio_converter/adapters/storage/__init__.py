from .s3_object_storage import S3ObjectReader, S3ObjectStorage, S3ObjectWriter

__all__ = ['S3ObjectReader', 'S3ObjectStorage', 'S3ObjectWriter']
