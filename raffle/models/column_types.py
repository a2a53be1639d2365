from sqlalchemy import BigInteger

# Amounts are stored in the smallest currency unit; timestamps as epoch seconds.
AMOUNT_TYPE = BigInteger()
TIMESTAMP_TYPE = BigInteger()
