"""Shared test fixtures for Rolegate."""

import pytest

from rolegate.rbac.parser import parse_text
from rolegate.rbac.validator import validate

ROLES_XML = """\
<?xml version="1.0" encoding="UTF-8"?>
<coffee-platform>
  <metadata>
    <name>Coffee Platform Roles</name>
    <description>Role definitions for the coffee supply chain</description>
    <version>1.0</version>
  </metadata>
  <roles>
    <role id="farmers" name="Farmers" connection-type="purple">
      <features>
        <feature id="profile" name="Profile" access-level="full"/>
        <feature id="supply-chain" name="Supply Chain" access-level="partial"/>
        <feature id="iot-devices" name="IoT Devices" access-level="full"/>
        <feature id="analytics" name="Analytics" access-level="view-only"/>
        <feature id="ai-tools" name="AI Tools" access-level="no"/>
      </features>
    </role>
    <role id="roasters" name="Roasters/Retailers" connection-type="purple">
      <features>
        <feature id="profile" name="Profile" access-level="full"/>
        <feature id="roast-profile" name="Roast Profile" access-level="full"/>
        <feature id="supply-chain" name="Supply Chain" access-level="view-only"/>
      </features>
    </role>
    <role id="hub-community" name="Hubs - Community" connection-type="pink">
      <features>
        <feature id="profile" name="Profile" access-level="partial"/>
        <feature id="analytics" name="Analytics" access-level="full"
                 description="Aggregated hub analytics"/>
      </features>
    </role>
  </roles>
  <feature-catalog>
    <feature id="profile" name="Profile" category="core"/>
    <feature id="role-dash" name="Role Dashboard" category="core"/>
    <feature id="supply-chain" name="Supply Chain" category="certification-traceability"/>
    <feature id="iot-devices" name="IoT Devices" category="farm-operations"/>
    <feature id="roast-profile" name="Roast Profile" category="production-contracts"/>
    <feature id="analytics" name="Analytics" category="analytics-ai"
             description="Dashboards and reports"/>
    <feature id="ai-tools" name="AI Tools" category="analytics-ai"/>
  </feature-catalog>
  <access-levels>
    <access-level id="full" name="Full Access" description="Read and write"/>
    <access-level id="partial" name="Partial Access" description="Limited write"/>
    <access-level id="view-only" name="View Only" description="Read only"/>
    <access-level id="no" name="No Access" description="Hidden"/>
  </access-levels>
  <categories>
    <category id="core" name="Core" description="Shared features"/>
    <category id="farm-operations" name="Farm Operations" description="On-farm tooling"/>
    <category id="production-contracts" name="Production &amp; Contracts" description="Roasting"/>
    <category id="certification-traceability" name="Certification" description="Traceability"/>
    <category id="analytics-ai" name="Analytics &amp; AI" description="Insights"/>
  </categories>
  <connection-types>
    <connection-type id="pink" name="Pink" description="Community connection"/>
    <connection-type id="purple" name="Purple" description="Producer connection"/>
  </connection-types>
</coffee-platform>
"""

ROLES_YAML = """\
coffee-platform:
  metadata:
    name: Coffee Platform Roles
    description: Role definitions for the coffee supply chain
    version: 1.0
  roles:
    - id: farmers
      name: Farmers
      connection-type: purple
      features:
        - {id: profile, access-level: full}
        - {id: iot-devices, access-level: partial}
  feature-catalog:
    - {id: profile, name: Profile, category: core}
    - {id: iot-devices, name: IoT Devices, category: farm-operations}
  access-levels:
    - {id: full, name: Full Access}
    - {id: partial, name: Partial Access}
    - {id: "no", name: No Access}
  categories:
    - {id: core, name: Core}
    - {id: farm-operations, name: Farm Operations}
  connection-types:
    - {id: purple, name: Purple}
"""


@pytest.fixture
def roles_xml() -> str:
    return ROLES_XML


@pytest.fixture
def roles_yaml() -> str:
    return ROLES_YAML


@pytest.fixture
def roles_file(tmp_path):
    path = tmp_path / "coffee-platform-roles.xml"
    path.write_text(ROLES_XML)
    return path


@pytest.fixture
def candidate():
    return parse_text(ROLES_XML)


@pytest.fixture
def rbac_config(candidate):
    result = validate(candidate)
    assert result.valid, result.errors
    return result.config
