"""
Re-shapes the flat 'http://byu.edu/claims/...' and 'http://wso2.org/claims/...'
claims into nested 'byu' and 'wso2' groups.
"""

import copy
from typing import Any, Dict, List, Mapping, Optional, Union

ClaimValue = Union[str, int, float, bool, None, List[Any], Dict[str, Any]]
Claims = Mapping[str, ClaimValue]

BYU_CLAIM_PREFIX = "http://byu.edu/claims/"
WSO2_CLAIM_PREFIX = "http://wso2.org/claims/"

# output field -> claim URI
CLIENT_CLAIMS = {
    "byuId": BYU_CLAIM_PREFIX + "client_byu_id",
    "claimSource": BYU_CLAIM_PREFIX + "client_claim_source",
    "netId": BYU_CLAIM_PREFIX + "client_net_id",
    "personId": BYU_CLAIM_PREFIX + "client_person_id",
    "preferredFirstName": BYU_CLAIM_PREFIX + "client_preferred_first_name",
    "prefix": BYU_CLAIM_PREFIX + "client_name_prefix",
    "restOfName": BYU_CLAIM_PREFIX + "client_rest_of_name",
    "sortName": BYU_CLAIM_PREFIX + "client_sort_name",
    "subscriberNetId": BYU_CLAIM_PREFIX + "client_subscriber_net_id",
    "suffix": BYU_CLAIM_PREFIX + "client_name_suffix",
    "surname": BYU_CLAIM_PREFIX + "client_surname",
    "surnamePosition": BYU_CLAIM_PREFIX + "client_surname_position",
}

RESOURCE_OWNER_CLAIMS = {
    "byuId": BYU_CLAIM_PREFIX + "resourceowner_byu_id",
    "netId": BYU_CLAIM_PREFIX + "resourceowner_net_id",
    "personId": BYU_CLAIM_PREFIX + "resourceowner_person_id",
    "preferredFirstName": BYU_CLAIM_PREFIX + "resourceowner_preferred_first_name",
    "prefix": BYU_CLAIM_PREFIX + "resourceowner_prefix",
    "restOfName": BYU_CLAIM_PREFIX + "resourceowner_rest_of_name",
    "sortName": BYU_CLAIM_PREFIX + "resourceowner_sort_name",
    "suffix": BYU_CLAIM_PREFIX + "resourceowner_suffix",
    "surname": BYU_CLAIM_PREFIX + "resourceowner_surname",
    "surnamePosition": BYU_CLAIM_PREFIX + "resourceowner_surname_position",
}

WSO2_CLAIMS = {
    "apiContext": WSO2_CLAIM_PREFIX + "apicontext",
    "clientId": WSO2_CLAIM_PREFIX + "client_id",
    "endUser": WSO2_CLAIM_PREFIX + "enduser",
    "endUserTenantId": WSO2_CLAIM_PREFIX + "enduserTenantId",
    "keyType": WSO2_CLAIM_PREFIX + "keytype",
    "subscriber": WSO2_CLAIM_PREFIX + "subscriber",
    "tier": WSO2_CLAIM_PREFIX + "tier",
    "userType": WSO2_CLAIM_PREFIX + "usertype",
    "version": WSO2_CLAIM_PREFIX + "version",
}

WSO2_APPLICATION_CLAIMS = {
    "id": WSO2_CLAIM_PREFIX + "applicationid",
    "name": WSO2_CLAIM_PREFIX + "applicationname",
    "tier": WSO2_CLAIM_PREFIX + "applicationtier",
}

WEBRES_CHECK_FIELDS = ("byuId", "netId", "personId")


def _project(claims: Claims, table: Mapping[str, str]) -> Dict[str, Optional[ClaimValue]]:
    return {field: copy.deepcopy(claims.get(uri)) for field, uri in table.items()}


def has_resource_owner(claims: Claims) -> bool:
    return RESOURCE_OWNER_CLAIMS["byuId"] in claims


def parse_claims(claims: Claims) -> Dict[str, Any]:
    """
    Return a copy of ``claims`` with 'byu' and 'wso2' groups added.

    byu.client is always present. byu.resourceOwner is present only when the
    token carries a resource owner BYU ID, and byu.webresCheck is taken
    entirely from resourceOwner in that case, otherwise entirely from client.
    Missing claims come through as None. The input is never modified.
    """
    result = copy.deepcopy(dict(claims))

    byu: Dict[str, Any] = {"client": _project(claims, CLIENT_CLAIMS)}
    if has_resource_owner(claims):
        byu["resourceOwner"] = _project(claims, RESOURCE_OWNER_CLAIMS)
        source = byu["resourceOwner"]
    else:
        source = byu["client"]
    byu["webresCheck"] = {field: copy.deepcopy(source[field]) for field in WEBRES_CHECK_FIELDS}

    wso2 = _project(claims, WSO2_CLAIMS)
    wso2["application"] = _project(claims, WSO2_APPLICATION_CLAIMS)

    result["byu"] = byu
    result["wso2"] = wso2
    return result
