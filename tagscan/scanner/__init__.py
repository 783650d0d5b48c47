"""tagscan detection engine.

Pattern registry (definitions), snippet extractor, structured document
walker, risk scorer and the scan aggregator that ties them together.
"""
