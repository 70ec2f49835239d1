"""Project version constants.

These constants are used in logs and in the botocore user agent so that
requests and log lines can be traced back to a specific release.
"""

ENGINE_NAME: str = "ec2trafficreport"
ENGINE_VERSION: str = "0.1.0"
