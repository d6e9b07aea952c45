"""Admission Form OCR Service.

Digitizes scanned admission forms: downloads the image, conditions it
for recognition, reads the text with Tesseract or a vision-language
model, extracts a structured lead record, stores it and pushes it to
the admissions service.
"""
