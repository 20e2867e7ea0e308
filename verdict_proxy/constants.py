APP_NAME = "verdict-proxy"
APP_TITLE = "Verdict Proxy"
PATH_PREFIX = "/verdict"

# Question appended to every category prompt by the caller wrapper
VERDICT_QUESTION = "Analyze this image and decide: PASS or FAIL?"
