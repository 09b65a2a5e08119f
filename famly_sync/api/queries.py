"""
GraphQL documents sent to the Famly GraphQL endpoint
"""

AUTHENTICATE_OPERATION = 'Authenticate'

AUTHENTICATE_MUTATION = """
mutation Authenticate($email: EmailAddress!, $password: Password!, $deviceId: DeviceId, $legacy: Boolean) {
  me {
    authenticateWithPassword(email: $email, password: $password, deviceId: $deviceId, legacy: $legacy) {
      ...AuthenticationResult
      __typename
    }
    __typename
  }
}

fragment AuthenticationResult on AuthenticationResult {
  status
  __typename
  ... on AuthenticationFailed {
    status
    errorDetails
    errorTitle
    __typename
  }
  ... on AuthenticationSucceeded {
    accessToken
    deviceId
    __typename
  }
  ... on AuthenticationChallenged {
    loginId
    deviceId
    expiresAt
    __typename
  }
}
"""

OBSERVATIONS_OPERATION = 'ObservationsByIds'

OBSERVATIONS_QUERY = """
query ObservationsByIds($observationIds: [ObservationId!]!) {
  childDevelopment {
    observations(first: 2147483647, observationIds: $observationIds, ignoreMissing: true) {
      results {
        ...ObservationData
        __typename
      }
      __typename
    }
    __typename
  }
}

fragment ObservationData on Observation {
  id
  version
  feedItem {
    id
    __typename
  }
  status {
    state
    createdAt
    __typename
  }
  variant
  images {
    height
    width
    id
    secret {
      crop
      expires
      key
      path
      prefix
      __typename
    }
    __typename
  }
  video {
    ... on TranscodingVideo {
      id
      __typename
    }
    ... on TranscodedVideo {
      duration
      height
      id
      thumbnailUrl
      videoUrl
      width
      __typename
    }
    __typename
  }
  __typename
}
"""
