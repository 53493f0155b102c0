"""
Candidate-Job Matching Engine

This app decides whether a candidate should be considered for a job, scores
the pair across skills, experience, domain and location, and persists the
result with an explanation. It includes:
- Matrix Store: structured candidate/job matrices produced by LLM extraction
- Eligibility Filter: coarse pass/fail gate applied before scoring
- Match Scorer: deterministic weighted 0-100 score with a breakdown
- Match Record Repository: upsert-by-pair persistence and status changes
- Batch Orchestrator: background bulk runs with pollable progress
"""
