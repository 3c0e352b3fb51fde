"""Application package for the Quiz & Questionnaire Builder."""
