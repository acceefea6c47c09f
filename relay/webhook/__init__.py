"""webhook — the relay's side of the workflow boundary.

This package owns everything between a validated question and an answer string:
- OutgoingRequest, the JSON body posted to the workflow
- WebhookClient, a single-attempt async HTTP POST with failure classification
- extract_answer, which interprets the workflow's loosely-shaped reply
"""
