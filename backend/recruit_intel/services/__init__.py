"""
Services Package

- lms: Canvas REST client and LMS payload errors
- storage / snapshot: async entity store and read-only JSON hydration
- identity / reconciler: LMS record reconciliation
- rate_limiter / prompts / ai_analysis: rate-limited AI gateway
- batch_queue / submission_analyzer: queued submission analysis
- job_tracker / insights: job progress and candidate insight aggregation
"""
